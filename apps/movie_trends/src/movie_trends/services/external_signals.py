"""External signal collectors: mention counts, interest ratio, video totals."""

from __future__ import annotations

import asyncio
from datetime import date, timedelta

from movie_trends.logging import get_logger
from movie_trends.ports.sources import InterestRatioPort, MentionCountPort, VideoSearchPort
from movie_trends.services.concurrency import map_limit
from movie_trends.services.metrics import MetricsRegistry, metrics as default_metrics
from movie_trends.services.trend_types import ExternalSignals, MentionCounts, SeedRow, VideoStats


def select_external_keywords(seeds: list[SeedRow], limit: int) -> list[str]:
    """Keywords of the best-ranked seeds; everything past ``limit`` gets zero signal."""
    keywords: list[str] = []
    for seed in sorted(seeds, key=lambda item: item.rank):
        if len(keywords) >= limit:
            break
        if seed.keyword and seed.keyword not in keywords:
            keywords.append(seed.keyword)
    return keywords


class ExternalSignalCollector:
    """Fans out to the secondary sources; never raises, zero-fills on any failure."""

    def __init__(
        self,
        *,
        mentions: MentionCountPort | None,
        interest: InterestRatioPort | None,
        videos: VideoSearchPort | None,
        concurrency: int = 3,
        categories: list[str] | None = None,
        interest_batch_size: int = 5,
        interest_window_days: int = 7,
        video_query_template: str = "{keyword} 예고편",
        metrics_registry: MetricsRegistry | None = None,
    ) -> None:
        self._mentions = mentions
        self._interest = interest
        self._videos = videos
        self._concurrency = concurrency
        self._categories = list(categories or ["blog", "cafearticle", "news"])
        self._batch_size = max(1, interest_batch_size)
        self._interest_window_days = max(1, interest_window_days)
        self._video_query_template = video_query_template
        self._metrics = metrics_registry or default_metrics
        self._log = get_logger(__name__)

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    def video_query(self, keyword: str) -> str:
        return self._video_query_template.format(keyword=keyword)

    def interest_range(self, target: date) -> tuple[date, date]:
        return target - timedelta(days=self._interest_window_days - 1), target

    async def collect_mentions(self, keywords: list[str]) -> dict[str, MentionCounts]:
        if self._mentions is None:
            self._log.info("external.mentions_skipped", reason="not_configured")
            return {k: MentionCounts({c: 0 for c in self._categories}) for k in keywords}

        async def _collect(keyword: str) -> MentionCounts:
            counts = await asyncio.gather(
                *(self._count(category, keyword) for category in self._categories)
            )
            return MentionCounts(dict(zip(self._categories, counts)))

        results = await map_limit(keywords, self._concurrency, _collect)
        return dict(zip(keywords, results))

    async def collect_interest(self, target: date, keywords: list[str]) -> dict[str, float]:
        ratios = {keyword: 0.0 for keyword in keywords}
        if self._interest is None:
            self._log.info("external.interest_skipped", reason="not_configured")
            return ratios

        start, end = self.interest_range(target)
        for offset in range(0, len(keywords), self._batch_size):
            batch = keywords[offset : offset + self._batch_size]
            try:
                found = await self._interest.interest_ratio(start=start, end=end, keywords=batch)
            except Exception as exc:
                self._degraded("interest", batch_size=len(batch), error=str(exc))
                continue
            for keyword in batch:
                ratios[keyword] = max(float(found.get(keyword, 0.0)), 0.0)
        return ratios

    async def collect_videos(self, keywords: list[str]) -> dict[str, VideoStats]:
        if self._videos is None:
            self._log.info("external.videos_skipped", reason="not_configured")
            return {keyword: VideoStats() for keyword in keywords}

        async def _collect(keyword: str) -> VideoStats:
            try:
                result = await self._videos.search_videos(self.video_query(keyword))  # type: ignore[union-attr]
            except Exception as exc:
                self._degraded("video", keyword=keyword, error=str(exc))
                return VideoStats()
            return VideoStats(
                total_results=max(result.total_results, 0),
                items_count=len(result.items),
            )

        results = await map_limit(keywords, self._concurrency, _collect)
        return dict(zip(keywords, results))

    async def collect_all(self, target: date, keywords: list[str]) -> ExternalSignals:
        return ExternalSignals(
            mentions=await self.collect_mentions(keywords),
            interest=await self.collect_interest(target, keywords),
            videos=await self.collect_videos(keywords),
        )

    async def _count(self, category: str, keyword: str) -> int:
        try:
            return max(await self._mentions.count_mentions(category, keyword), 0)  # type: ignore[union-attr]
        except Exception as exc:
            self._degraded("mentions", keyword=keyword, category=category, error=str(exc))
            return 0

    def _degraded(self, family: str, **fields: object) -> None:
        self._metrics.inc_counter("trend_external_degraded_total", labels={"family": family})
        self._log.warning(f"external.{family}_failed", **fields)
