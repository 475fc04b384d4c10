"""YouTube Data API search adapter."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from movie_trends.adapters.http import request_json
from movie_trends.ports.sources import MissingCredentials, VideoSearchResult
from movie_trends.utils.titles import safe_int


@dataclass(slots=True)
class YoutubeSearchClient:
    http: httpx.AsyncClient
    api_key: str | None
    url: str = "https://www.googleapis.com/youtube/v3/search"
    region_code: str = "KR"
    max_results: int = 10
    timeout_seconds: float = 12.0

    async def search_videos(self, query: str) -> VideoSearchResult:
        if not self.api_key:
            raise MissingCredentials("YouTube api key is not set")

        data = await request_json(
            self.http,
            "GET",
            self.url,
            timeout=self.timeout_seconds,
            params={
                "key": self.api_key,
                "part": "snippet",
                "q": query,
                "regionCode": self.region_code,
                "maxResults": self.max_results,
                "type": "video",
                "safeSearch": "none",
            },
        )
        page_info = data.get("pageInfo") or {}
        items = data.get("items")
        return VideoSearchResult(
            total_results=safe_int(page_info.get("totalResults")) if isinstance(page_info, dict) else 0,
            items=[item for item in items if isinstance(item, dict)] if isinstance(items, list) else [],
        )
