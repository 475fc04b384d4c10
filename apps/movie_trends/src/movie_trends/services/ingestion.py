"""Daily trend ingestion pipeline."""

from __future__ import annotations

import asyncio
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.config import Settings
from movie_trends.db.models import JsonDict, MediaType, TrendSource
from movie_trends.logging import get_logger, run_context
from movie_trends.monitoring import capture_sentry_exception
from movie_trends.ports.sources import (
    ChartSourcePort,
    InterestRatioPort,
    MentionCountPort,
    MetadataSearchPort,
    VideoSearchPort,
)
from movie_trends.repositories.ingest_runs import TrendIngestRunRepository
from movie_trends.repositories.trend_metrics import TrendMetricRepository
from movie_trends.repositories.trend_scores import TrendScoreRepository
from movie_trends.repositories.trend_seed_ranks import TrendSeedRankRepository
from movie_trends.repositories.trend_seeds import TrendSeedRepository
from movie_trends.repositories.trend_topics import TrendTopicRepository
from movie_trends.services.aggregation import aggregate_topics
from movie_trends.services.entity_matcher import EntityMatcher
from movie_trends.services.external_signals import ExternalSignalCollector, select_external_keywords
from movie_trends.services.fallback import FallbackRanker
from movie_trends.services.lookup_cache import LookupCache
from movie_trends.services.metrics import MetricsRegistry, metrics as default_metrics
from movie_trends.services.projection import (
    build_metric_inputs,
    build_score_inputs,
    build_seed_rank_inputs,
)
from movie_trends.services.ranking import TrendScorer
from movie_trends.services.run_audit import RunAuditor
from movie_trends.services.seed_registry import SeedRegistry
from movie_trends.services.topic_resolver import TopicResolver
from movie_trends.services.trend_types import (
    ExternalSignals,
    IngestResult,
    IngestStage,
    RankingResult,
    SeedRow,
    WindowResult,
)
from movie_trends.services.window import WindowCollector
from movie_trends.utils.dates import default_target_date

CHART_ENDPOINT = "kobisopenapi/webservice/rest/boxoffice/searchDailyBoxOfficeList.json"
MENTIONS_ENDPOINT = "openapi.naver.com/v1/search/{category}.json"
INTEREST_ENDPOINT = "openapi.naver.com/v1/datalab/search"
VIDEO_ENDPOINT = "www.googleapis.com/youtube/v3/search"


class TrendIngestionPipeline:
    """Runs one ingestion per (date, region).

    Stages: collect window candidates, register seeds, match external ids,
    resolve topics, collect external signals, aggregate, score, persist.
    Only a primary chart failure or a persistence error escapes; the run row
    is marked failed before the exception propagates.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        chart: ChartSourcePort,
        search: MetadataSearchPort | None = None,
        mentions: MentionCountPort | None = None,
        interest: InterestRatioPort | None = None,
        videos: VideoSearchPort | None = None,
        cache: LookupCache | None = None,
        seeds_repo: TrendSeedRepository | None = None,
        topics_repo: TrendTopicRepository | None = None,
        metrics_repo: TrendMetricRepository | None = None,
        scores_repo: TrendScoreRepository | None = None,
        seed_ranks_repo: TrendSeedRankRepository | None = None,
        runs_repo: TrendIngestRunRepository | None = None,
        metrics_registry: MetricsRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory
        self._metrics = metrics_registry or default_metrics
        self._metrics_repo = metrics_repo or TrendMetricRepository()
        self._scores_repo = scores_repo or TrendScoreRepository()
        self._seed_ranks_repo = seed_ranks_repo or TrendSeedRankRepository()
        self._source = str(TrendSource.KOBIS)
        self._media_type = str(MediaType.MOVIE)
        self._run_locks: dict[tuple[date, str], asyncio.Lock] = {}
        self._run_lock_users: dict[tuple[date, str], int] = {}
        self._log = get_logger(__name__)

        seeds_repo = seeds_repo or TrendSeedRepository()
        chart_settings = settings.chart
        matcher_settings = settings.matcher

        self._window = WindowCollector(
            chart=chart,
            window_days=chart_settings.window_days,
            daily_top=chart_settings.daily_top,
            candidate_limit=chart_settings.candidate_limit,
            metrics_registry=self._metrics,
        )
        self._registry = SeedRegistry(
            session_factory=session_factory,
            seeds_repo=seeds_repo,
            source=self._source,
            media_type=self._media_type,
        )
        self._matcher = EntityMatcher(
            search=search,
            session_factory=session_factory,
            cache=cache
            or LookupCache(
                ttl_seconds=matcher_settings.cache_ttl_seconds,
                negative_ttl_seconds=matcher_settings.cache_negative_ttl_seconds,
                max_entries=matcher_settings.cache_max_entries,
            ),
            seeds_repo=seeds_repo,
            concurrency=matcher_settings.concurrency,
            accept_threshold=matcher_settings.accept_threshold,
            metrics_registry=self._metrics,
        )
        self._resolver = TopicResolver(
            session_factory=session_factory,
            topics_repo=topics_repo,
            seeds_repo=seeds_repo,
            concurrency=settings.topics.concurrency,
            alias_confidence=settings.topics.alias_confidence,
            source=self._source,
            media_type=self._media_type,
        )
        self._collector = ExternalSignalCollector(
            mentions=mentions,
            interest=interest,
            videos=videos,
            concurrency=settings.external.concurrency,
            categories=settings.mentions.categories,
            interest_batch_size=settings.interest.batch_size,
            interest_window_days=settings.interest.window_days,
            video_query_template=settings.video.query_template,
            metrics_registry=self._metrics,
        )
        self._scorer = TrendScorer(settings=settings.scoring)
        self._fallback = FallbackRanker(
            session_factory=session_factory,
            seed_ranks_repo=self._seed_ranks_repo,
        )
        self._auditor = RunAuditor(
            session_factory=session_factory,
            region=settings.region,
            runs_repo=runs_repo,
        )

    async def run(self, target: date | None = None) -> IngestResult:
        day = target or default_target_date(self._settings.timezone)
        key = (day, self._settings.region)
        lock = self._run_locks.setdefault(key, asyncio.Lock())
        self._run_lock_users[key] = self._run_lock_users.get(key, 0) + 1
        if lock.locked():
            self._log.info("ingest.waiting_for_run", date=day.isoformat(), region=self._settings.region)
        try:
            async with lock:
                with run_context(date=day.isoformat(), region=self._settings.region):
                    return await self._run_locked(day)
        finally:
            self._release_run_lock(key)

    def _release_run_lock(self, key: tuple[date, str]) -> None:
        remaining = self._run_lock_users[key] - 1
        if remaining:
            self._run_lock_users[key] = remaining
            return
        del self._run_lock_users[key]
        del self._run_locks[key]

    async def _run_locked(self, day: date) -> IngestResult:
        run_id = await self._auditor.start(day)
        stage = IngestStage.COLLECTING_CANDIDATES
        try:
            self._enter(stage, day)
            window = await self._window.collect(day)
            await self._snapshot_window(run_id, day, window)

            stage = self._enter(IngestStage.RESOLVING_SEEDS, day)
            seeds = await self._registry.register(
                window.candidates,
                target=day,
                window_days=self._settings.chart.window_days,
            )

            stage = self._enter(IngestStage.MATCHING_ENTITIES, day)
            await self._matcher.match_seeds(seeds)

            stage = self._enter(IngestStage.RESOLVING_TOPICS, day)
            await self._resolver.resolve_topics(seeds)

            stage = self._enter(IngestStage.COLLECTING_EXTERNAL_METRICS, day)
            signals = await self._collect_external(run_id, day, seeds)

            stage = self._enter(IngestStage.AGGREGATING, day)
            topics = aggregate_topics(seeds, signals)
            if not topics:
                stage = self._enter(IngestStage.PERSISTING, day)
                total = await self._fallback.persist(day, seeds)
                await self._auditor.finish_success(
                    run_id,
                    meta={**self._base_meta(day, total, window), "fallback": True},
                )
                self._record_success(day, total, topics=0, coverage=0.0, fallback=True)
                return IngestResult(date=day, total=total, run_id=run_id, fallback=True)

            stage = self._enter(IngestStage.SCORING, day)
            ranking = self._scorer.score(topics)

            stage = self._enter(IngestStage.PERSISTING, day)
            total = await self._persist(day, seeds, ranking)
            await self._auditor.finish_success(
                run_id,
                meta={
                    **self._base_meta(day, total, window),
                    "coverage": ranking.coverage,
                    "weights": ranking.weights.as_dict(),
                    "topics": len(ranking.topics),
                },
            )
            self._record_success(
                day,
                total,
                topics=len(ranking.topics),
                coverage=ranking.coverage,
                fallback=False,
            )
            return IngestResult(date=day, total=total, run_id=run_id)
        except Exception as exc:
            await self._record_failure(run_id, day, stage, exc)
            raise

    def _enter(self, stage: IngestStage, day: date) -> IngestStage:
        self._log.info("ingest.stage", date=day.isoformat(), stage=stage.value)
        return stage

    async def _collect_external(
        self,
        run_id: int,
        day: date,
        seeds: list[SeedRow],
    ) -> ExternalSignals:
        keywords = select_external_keywords(seeds, self._settings.external.keyword_limit)

        mentions = await self._collector.collect_mentions(keywords)
        await self._auditor.snapshot(
            run_id,
            source=str(TrendSource.NAVER),
            endpoint=MENTIONS_ENDPOINT,
            request={
                "keywords": keywords,
                "categories": self._collector.categories,
                "display": 1,
                "start": 1,
                "sort": "sim",
            },
            response={
                "count": len(mentions),
                "nonzero": sum(1 for counts in mentions.values() if counts.total > 0),
            },
        )

        interest = await self._collector.collect_interest(day, keywords)
        start, end = self._collector.interest_range(day)
        await self._auditor.snapshot(
            run_id,
            source=str(TrendSource.NAVER),
            endpoint=INTEREST_ENDPOINT,
            request={
                "start": start.isoformat(),
                "end": end.isoformat(),
                "keywords": keywords,
                "time_unit": "date",
            },
            response={
                "count": len(interest),
                "nonzero": sum(1 for ratio in interest.values() if ratio > 0),
            },
        )

        videos = await self._collector.collect_videos(keywords)
        await self._auditor.snapshot(
            run_id,
            source=str(TrendSource.YOUTUBE),
            endpoint=VIDEO_ENDPOINT,
            request={"keywords": keywords, "query_template": self._settings.video.query_template},
            response={
                "count": len(videos),
                "nonzero": sum(1 for stats in videos.values() if stats.total_results > 0),
            },
        )
        return ExternalSignals(mentions=mentions, interest=interest, videos=videos)

    async def _persist(self, day: date, seeds: list[SeedRow], ranking: RankingResult) -> int:
        scores = build_score_inputs(day, ranking, algo_version=self._scorer.algo_version)
        metric_rows = build_metric_inputs(day, ranking)
        seed_ranks = build_seed_rank_inputs(day, seeds, ranking)
        async with self._session_factory() as session:
            async with session.begin():
                await self._scores_repo.upsert_many(session, items=scores)
                await self._metrics_repo.upsert_many(session, items=metric_rows)
                await self._seed_ranks_repo.upsert_many(session, items=seed_ranks)
        return len(seed_ranks)

    async def _snapshot_window(self, run_id: int, day: date, window: WindowResult) -> None:
        chart = self._settings.chart
        await self._auditor.snapshot(
            run_id,
            source=self._source,
            endpoint=CHART_ENDPOINT,
            request={
                "date": day.isoformat(),
                "window_days": chart.window_days,
                "daily_top": chart.daily_top,
                "candidate_limit": chart.candidate_limit,
            },
            response={
                "unique_count": window.unique_count,
                "per_day_counts": window.per_day_counts,
                "selected_count": window.selected_count,
            },
        )

    def _base_meta(self, day: date, total: int, window: WindowResult) -> JsonDict:
        chart = self._settings.chart
        return {
            "date": day.isoformat(),
            "total": total,
            "algo_version": self._scorer.algo_version,
            "window_days": chart.window_days,
            "daily_top": chart.daily_top,
            "candidate_limit": chart.candidate_limit,
            "external_keyword_limit": self._settings.external.keyword_limit,
            "window": {
                "unique_count": window.unique_count,
                "selected_count": window.selected_count,
                "per_day_counts": window.per_day_counts,
            },
        }

    def _record_success(
        self,
        day: date,
        total: int,
        *,
        topics: int,
        coverage: float,
        fallback: bool,
    ) -> None:
        self._metrics.inc_counter("trend_ingest_runs_total", labels={"status": "success"})
        self._metrics.set_gauge("trend_ingest_topics", topics)
        self._metrics.set_gauge("trend_ingest_coverage", coverage)
        self._log.info(
            "ingest.done",
            date=day.isoformat(),
            region=self._settings.region,
            total=total,
            topics=topics,
            coverage=coverage,
            fallback=fallback,
        )

    async def _record_failure(
        self,
        run_id: int,
        day: date,
        stage: IngestStage,
        exc: Exception,
    ) -> None:
        self._metrics.inc_counter("trend_ingest_runs_total", labels={"status": "failed"})
        self._log.error(
            "ingest.failed",
            date=day.isoformat(),
            region=self._settings.region,
            stage=stage.value,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        try:
            await self._auditor.finish_failed(
                run_id,
                error=str(exc) or type(exc).__name__,
                meta={"stage": stage.value, "error_type": type(exc).__name__},
            )
        except Exception:
            self._log.exception("ingest.failure_record_failed", run_id=run_id)
        capture_sentry_exception(
            exc,
            context={
                "date": day.isoformat(),
                "region": self._settings.region,
                "stage": stage.value,
            },
        )
