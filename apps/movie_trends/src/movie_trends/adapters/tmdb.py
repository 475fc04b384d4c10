"""TMDB movie search adapter."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from movie_trends.adapters.http import request_json
from movie_trends.ports.sources import MissingCredentials, MovieCandidate
from movie_trends.utils.titles import safe_float, safe_int


@dataclass(slots=True)
class TmdbSearchClient:
    http: httpx.AsyncClient
    api_key: str | None
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "ko-KR"
    region: str = "KR"
    include_adult: bool = False
    timeout_seconds: float = 10.0

    async def search_by_title(
        self, title: str, *, year: int | None = None
    ) -> list[MovieCandidate]:
        if not self.api_key:
            raise MissingCredentials("TMDB api key is not set")

        params: dict[str, str | int | bool] = {
            "api_key": self.api_key,
            "query": title,
            "page": 1,
            "include_adult": self.include_adult,
            "language": self.language,
            "region": self.region,
        }
        if year:
            params["year"] = year
            params["primary_release_year"] = year

        data = await request_json(
            self.http,
            "GET",
            f"{self.base_url.rstrip('/')}/search/movie",
            timeout=self.timeout_seconds,
            params=params,
        )
        results = data.get("results")
        if not isinstance(results, list):
            return []

        candidates: list[MovieCandidate] = []
        for row in results:
            if not isinstance(row, dict) or row.get("id") is None:
                continue
            candidates.append(
                MovieCandidate(
                    id=safe_int(row.get("id")),
                    title=str(row.get("title") or ""),
                    alt_title=row.get("original_title") or None,
                    popularity=safe_float(row.get("popularity")),
                    vote_count=safe_int(row.get("vote_count")),
                    release_date=row.get("release_date") or None,
                )
            )
        return candidates
