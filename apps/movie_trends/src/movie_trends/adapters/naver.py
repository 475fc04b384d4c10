"""Naver search and DataLab adapters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import httpx

from movie_trends.adapters.http import request_json
from movie_trends.ports.sources import MissingCredentials
from movie_trends.utils.titles import safe_float, safe_int


def _auth_headers(client_id: str | None, client_secret: str | None) -> dict[str, str]:
    if not client_id or not client_secret:
        raise MissingCredentials("Naver client id/secret are not set")
    return {
        "X-Naver-Client-Id": client_id,
        "X-Naver-Client-Secret": client_secret,
    }


@dataclass(slots=True)
class NaverSearchClient:
    http: httpx.AsyncClient
    client_id: str | None
    client_secret: str | None
    base_url: str = "https://openapi.naver.com/v1/search"
    timeout_seconds: float = 10.0

    async def count_mentions(self, category: str, query: str) -> int:
        headers = _auth_headers(self.client_id, self.client_secret)
        data = await request_json(
            self.http,
            "GET",
            f"{self.base_url.rstrip('/')}/{category}.json",
            timeout=self.timeout_seconds,
            params={"query": query, "display": 1, "start": 1, "sort": "sim"},
            headers=headers,
        )
        return max(safe_int(data.get("total")), 0)


@dataclass(slots=True)
class NaverDataLabClient:
    http: httpx.AsyncClient
    client_id: str | None
    client_secret: str | None
    url: str = "https://openapi.naver.com/v1/datalab/search"
    timeout_seconds: float = 12.0

    async def interest_ratio(
        self,
        *,
        start: date,
        end: date,
        keywords: list[str],
    ) -> dict[str, float]:
        headers = _auth_headers(self.client_id, self.client_secret)
        body = {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "timeUnit": "date",
            "keywordGroups": [{"groupName": k, "keywords": [k]} for k in keywords],
        }
        data = await request_json(
            self.http,
            "POST",
            self.url,
            timeout=self.timeout_seconds,
            json=body,
            headers=headers,
        )
        ratios: dict[str, float] = {}
        for result in data.get("results") or []:
            if not isinstance(result, dict):
                continue
            title = str(result.get("title") or "")
            points = result.get("data") or []
            last = points[-1] if isinstance(points, list) and points else None
            ratios[title] = safe_float(last.get("ratio")) if isinstance(last, dict) else 0.0
        return ratios
