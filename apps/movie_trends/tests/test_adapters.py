from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from movie_trends.adapters.kobis import KobisChartClient
from movie_trends.adapters.naver import NaverDataLabClient, NaverSearchClient
from movie_trends.adapters.tmdb import TmdbSearchClient
from movie_trends.adapters.youtube import YoutubeSearchClient
from movie_trends.ports.sources import (
    ChartEntry,
    MissingCredentials,
    MovieCandidate,
    SourceDegraded,
    SourceError,
)


def _client(handler) -> httpx.AsyncClient:  # noqa: ANN001
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_kobis_parses_daily_chart() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(
            200,
            json={
                "boxOfficeResult": {
                    "dailyBoxOfficeList": [
                        {
                            "rank": "1",
                            "movieNm": "기생충",
                            "movieCd": "20183782",
                            "openDt": "2019-05-30",
                            "audiAcc": "10085275",
                        },
                        {"rank": "2", "movieNm": "No Code", "movieCd": ""},
                        {"rank": "x", "movieNm": "Odd Rank", "movieCd": "1", "audiAcc": "n/a"},
                    ]
                }
            },
        )

    async with _client(handler) as http:
        client = KobisChartClient(http=http, api_key="kobis-key")
        entries = await client.fetch_daily_top(date(2026, 10, 18), limit=5)

    request = seen["request"]
    assert request.url.path.endswith("/boxoffice/searchDailyBoxOfficeList.json")
    assert request.url.params["targetDt"] == "20261018"
    assert request.url.params["itemPerPage"] == "10"
    assert request.url.params["key"] == "kobis-key"
    assert entries == [
        ChartEntry(
            rank=1,
            name="기생충",
            code="20183782",
            open_date="2019-05-30",
            cumulative_audience=10085275,
        ),
        ChartEntry(rank=999, name="Odd Rank", code="1", open_date="", cumulative_audience=0),
    ]


@pytest.mark.asyncio
async def test_kobis_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    async with _client(handler) as http:
        with pytest.raises(MissingCredentials):
            await KobisChartClient(http=http, api_key=None).fetch_daily_top(date(2026, 10, 18), limit=10)
        with pytest.raises(SourceError):
            await KobisChartClient(http=http, api_key="k").fetch_daily_top(date(2026, 10, 18), limit=10)


@pytest.mark.asyncio
async def test_tmdb_search_sends_year_filters() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(
            200,
            json={
                "results": [
                    {
                        "id": 496243,
                        "title": "기생충",
                        "original_title": "기생충",
                        "popularity": 40.5,
                        "vote_count": 18000,
                        "release_date": "2019-05-30",
                    },
                    {"title": "missing id"},
                ]
            },
        )

    async with _client(handler) as http:
        client = TmdbSearchClient(http=http, api_key="tmdb-key")
        candidates = await client.search_by_title("기생충", year=2019)

    params = seen["request"].url.params
    assert seen["request"].url.path.endswith("/search/movie")
    assert params["query"] == "기생충"
    assert params["year"] == "2019"
    assert params["primary_release_year"] == "2019"
    assert params["include_adult"] == "false"
    assert params["language"] == "ko-KR"
    assert candidates == [
        MovieCandidate(
            id=496243,
            title="기생충",
            alt_title="기생충",
            popularity=40.5,
            vote_count=18000,
            release_date="2019-05-30",
        )
    ]


@pytest.mark.asyncio
async def test_tmdb_search_without_year_and_invalid_json() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text="not json")

    async with _client(handler) as http:
        with pytest.raises(SourceDegraded):
            await TmdbSearchClient(http=http, api_key="k").search_by_title("Avatar")

    assert "year" not in requests[0].url.params


@pytest.mark.asyncio
async def test_naver_search_reads_total() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"total": 1234, "items": []})

    async with _client(handler) as http:
        client = NaverSearchClient(http=http, client_id="id", client_secret="secret")
        total = await client.count_mentions("blog", "기생충")

    request = seen["request"]
    assert total == 1234
    assert request.url.path == "/v1/search/blog.json"
    assert request.url.params["query"] == "기생충"
    assert request.headers["X-Naver-Client-Id"] == "id"
    assert request.headers["X-Naver-Client-Secret"] == "secret"


@pytest.mark.asyncio
async def test_naver_requires_credentials() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(handler) as http:
        with pytest.raises(MissingCredentials):
            await NaverSearchClient(http=http, client_id=None, client_secret="s").count_mentions(
                "news", "Avatar"
            )


@pytest.mark.asyncio
async def test_datalab_takes_latest_ratio_per_keyword() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "results": [
                    {
                        "title": "기생충",
                        "data": [
                            {"period": "2026-10-17", "ratio": 10.5},
                            {"period": "2026-10-18", "ratio": 42.0},
                        ],
                    },
                    {"title": "Avatar", "data": []},
                ]
            },
        )

    async with _client(handler) as http:
        client = NaverDataLabClient(http=http, client_id="id", client_secret="secret")
        ratios = await client.interest_ratio(
            start=date(2026, 10, 12),
            end=date(2026, 10, 18),
            keywords=["기생충", "Avatar"],
        )

    assert ratios == {"기생충": 42.0, "Avatar": 0.0}
    assert bodies[0]["startDate"] == "2026-10-12"
    assert bodies[0]["endDate"] == "2026-10-18"
    assert bodies[0]["timeUnit"] == "date"
    assert bodies[0]["keywordGroups"] == [
        {"groupName": "기생충", "keywords": ["기생충"]},
        {"groupName": "Avatar", "keywords": ["Avatar"]},
    ]


@pytest.mark.asyncio
async def test_youtube_reports_total_and_items() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(
            200,
            json={"pageInfo": {"totalResults": 5000}, "items": [{"id": 1}, {"id": 2}, "junk"]},
        )

    async with _client(handler) as http:
        client = YoutubeSearchClient(http=http, api_key="yt-key")
        result = await client.search_videos("기생충 예고편")

    assert result.total_results == 5000
    assert len(result.items) == 2
    assert seen["request"].url.params["q"] == "기생충 예고편"
    assert seen["request"].url.params["type"] == "video"


@pytest.mark.asyncio
async def test_http_errors_become_degraded_source_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as http:
        with pytest.raises(SourceDegraded):
            await YoutubeSearchClient(http=http, api_key="k").search_videos("Avatar 예고편")
