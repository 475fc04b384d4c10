"""KOBIS daily box-office adapter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import httpx

from movie_trends.adapters.http import request_json
from movie_trends.ports.sources import ChartEntry, MissingCredentials, SourceError
from movie_trends.utils.dates import to_ymd
from movie_trends.utils.titles import safe_int

DAILY_BOX_OFFICE_PATH = "/boxoffice/searchDailyBoxOfficeList.json"


@dataclass(slots=True)
class KobisChartClient:
    http: httpx.AsyncClient
    api_key: str | None
    base_url: str = "https://kobis.or.kr/kobisopenapi/webservice/rest"
    timeout_seconds: float = 10.0

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}{DAILY_BOX_OFFICE_PATH}"

    async def fetch_daily_top(self, day: date, *, limit: int) -> list[ChartEntry]:
        if not self.api_key:
            raise MissingCredentials("KOBIS api key is not set")

        data = await request_json(
            self.http,
            "GET",
            self.endpoint,
            timeout=self.timeout_seconds,
            error_cls=SourceError,
            params={
                "key": self.api_key,
                "targetDt": to_ymd(day),
                "itemPerPage": min(max(limit, 10), 100),
            },
        )
        result = data.get("boxOfficeResult") or {}
        rows = result.get("dailyBoxOfficeList") if isinstance(result, dict) else None
        if not isinstance(rows, list):
            return []

        entries: list[ChartEntry] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            code = str(row.get("movieCd") or "").strip()
            if not code:
                continue
            entries.append(
                ChartEntry(
                    rank=safe_int(row.get("rank"), 999),
                    name=str(row.get("movieNm") or ""),
                    code=code,
                    open_date=str(row.get("openDt") or ""),
                    cumulative_audience=safe_int(row.get("audiAcc"), 0),
                )
            )
        return entries
