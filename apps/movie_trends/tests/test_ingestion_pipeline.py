from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from movie_trends.config import ChartSettings
from movie_trends.ports.sources import MovieCandidate, SourceUnavailable
from movie_trends.services.ingestion import TrendIngestionPipeline
from movie_trends.services.lookup_cache import LookupCache
from movie_trends.services.metrics import MetricsRegistry
from trend_fakes import (
    FakeChart,
    FakeInterest,
    FakeMentions,
    FakeSearch,
    FakeSessionFactory,
    FakeVideos,
    InMemoryTrendStore,
    chart_entry,
    make_settings,
)

TARGET = date(2026, 10, 18)
PARASITE_ID = 496243


def _chart() -> FakeChart:
    return FakeChart(
        days={
            TARGET: [
                chart_entry("A", "기생충", 1, 1000, "2019-05-30"),
                chart_entry("B", "Parasite", 2, 400),
                chart_entry("C", "Avatar", 3, 300, "2009-12-17"),
            ],
            TARGET - timedelta(days=1): [chart_entry("D", "Movie D", 1)],
        }
    )


def _search() -> FakeSearch:
    return FakeSearch(
        results={
            ("기생충", 2019): [
                MovieCandidate(id=PARASITE_ID, title="기생충", release_date="2019-05-30")
            ],
            ("Parasite", None): [
                MovieCandidate(id=PARASITE_ID, title="Parasite", release_date="2019-05-30")
            ],
            ("Avatar", 2009): [MovieCandidate(id=19995, title="Avatar", release_date="2009-12-15")],
        }
    )


def _pipeline(store: InMemoryTrendStore, chart: FakeChart, *, registry=None, **ports) -> TrendIngestionPipeline:  # noqa: ANN001, ANN003
    return TrendIngestionPipeline(
        settings=make_settings(chart=ChartSettings(window_days=2, daily_top=10, candidate_limit=10)),
        session_factory=FakeSessionFactory(),
        chart=chart,
        cache=LookupCache(),
        metrics_registry=registry or MetricsRegistry(),
        **ports,
        **store.repositories(),
    )


def _full_pipeline(store: InMemoryTrendStore, *, registry=None) -> TrendIngestionPipeline:  # noqa: ANN001
    return _pipeline(
        store,
        _chart(),
        registry=registry,
        search=_search(),
        mentions=FakeMentions(
            counts={("blog", "기생충"): 100, ("news", "Avatar"): 3, ("blog", "Movie D"): 1}
        ),
        interest=FakeInterest(ratios={"Parasite": 40.0}),
        videos=FakeVideos(totals={"Avatar": 2000}),
    )


@pytest.mark.asyncio
async def test_run_scores_topics_and_records_success() -> None:
    store = InMemoryTrendStore()
    registry = MetricsRegistry()

    result = await _full_pipeline(store, registry=registry).run(TARGET)

    assert result.date == TARGET
    assert result.total == 4
    assert result.fallback is False

    assert len(store.seeds) == 4
    assert store.seeds[("Parasite", "kobis", "movie")].external_id == PARASITE_ID
    assert len(store.topics) == 3
    assert len(store.aliases) == 4
    parasite_topic = store.seeds[("기생충", "kobis", "movie")].topic_id
    assert store.seeds[("Parasite", "kobis", "movie")].topic_id == parasite_topic

    assert len(store.scores) == 3
    assert sorted(item.rank for item in store.scores.values()) == [1, 2, 3]
    assert sorted(item.rank for item in store.seed_ranks.values()) == [1, 2, 3, 4]
    assert {item.algo_version for item in store.scores.values()} == {"kr.daily.v1"}
    assert any(key[3] == "naver.blog_total" for key in store.metrics)

    run = store.run_by_id(result.run_id)
    assert run.status == "success"
    assert run.finished
    assert run.meta["total"] == 4
    assert run.meta["topics"] == 3
    assert run.meta["coverage"] == 1.0
    assert set(run.meta["weights"]) == {"kobis", "datalab", "naver", "youtube"}
    assert run.meta["window"]["unique_count"] == 4
    assert len(store.snapshots) == 4
    assert {snapshot.source for snapshot in store.snapshots} == {"kobis", "naver", "youtube"}

    assert registry.value("trend_ingest_runs_total", labels={"status": "success"}) == 1.0
    assert registry.value("trend_ingest_topics") == 3.0


@pytest.mark.asyncio
async def test_rerunning_a_date_is_idempotent() -> None:
    store = InMemoryTrendStore()

    first = await _full_pipeline(store).run(TARGET)
    scores = {key: (item.rank, item.score) for key, item in store.scores.items()}
    seed_ranks = {key: (item.rank, item.score) for key, item in store.seed_ranks.items()}

    second = await _full_pipeline(store).run(TARGET)

    assert second.run_id == first.run_id
    assert len(store.runs) == 1
    assert len(store.topics) == 3
    assert {key: (item.rank, item.score) for key, item in store.scores.items()} == scores
    assert {key: (item.rank, item.score) for key, item in store.seed_ranks.items()} == seed_ranks


@pytest.mark.asyncio
async def test_empty_chart_window_fails_the_run() -> None:
    store = InMemoryTrendStore()
    registry = MetricsRegistry()

    with pytest.raises(SourceUnavailable):
        await _pipeline(store, FakeChart(), registry=registry).run(TARGET)

    run = store.runs[(TARGET, "KR")]
    assert run.status == "failed"
    assert run.error
    assert run.meta == {"stage": "collecting_candidates", "error_type": "SourceUnavailable"}
    assert store.seeds == {}
    assert store.scores == {}
    assert registry.value("trend_ingest_runs_total", labels={"status": "failed"}) == 1.0


@pytest.mark.asyncio
async def test_unusable_titles_fall_back_to_seed_ranking() -> None:
    store = InMemoryTrendStore()
    chart = FakeChart(days={TARGET: [chart_entry("A", "!!!", 2), chart_entry("B", "???", 1)]})

    result = await _pipeline(store, chart).run(TARGET)

    assert result.fallback is True
    assert result.total == 2
    assert store.scores == {}
    assert store.metrics == {}
    assert all(item.breakdown["fallback"] for item in store.seed_ranks.values())
    best = next(item for item in store.seed_ranks.values() if item.rank == 1)
    assert store.seed_by_id(best.seed_id).keyword == "???"
    run = store.run_by_id(result.run_id)
    assert run.status == "success"
    assert run.meta["fallback"] is True


@pytest.mark.asyncio
async def test_secondary_sources_down_still_produce_ranking() -> None:
    store = InMemoryTrendStore()
    registry = MetricsRegistry()
    pipeline = _pipeline(
        store,
        _chart(),
        registry=registry,
        search=FakeSearch(fail=True),
        mentions=FakeMentions(failing_categories={"blog", "cafearticle", "news"}),
        interest=FakeInterest(failing_keywords={"기생충"}),
        videos=FakeVideos(failing={"기생충", "Parasite", "Avatar", "Movie D"}),
    )

    result = await pipeline.run(TARGET)

    assert result.total == 4
    assert len(store.topics) == 4
    run = store.run_by_id(result.run_id)
    assert run.status == "success"
    assert run.meta["coverage"] == 0.0
    ranked = sorted(store.seed_ranks.values(), key=lambda item: item.rank)
    keywords = [store.seed_by_id(item.seed_id).keyword for item in ranked]
    assert keywords[-1] == "Avatar"
    assert registry.value("trend_external_degraded_total", labels={"family": "video"}) == 4.0


@pytest.mark.asyncio
async def test_snapshot_failures_do_not_abort_the_run() -> None:
    store = InMemoryTrendStore()
    store.fail_snapshots = True

    result = await _full_pipeline(store).run(TARGET)

    assert store.run_by_id(result.run_id).status == "success"
    assert store.snapshots == []


@pytest.mark.asyncio
async def test_persistence_failure_marks_run_failed() -> None:
    store = InMemoryTrendStore()
    store.fail_scores = True

    with pytest.raises(RuntimeError, match="score batch rejected"):
        await _full_pipeline(store).run(TARGET)

    run = store.runs[(TARGET, "KR")]
    assert run.status == "failed"
    assert run.error == "score batch rejected"
    assert run.meta["stage"] == "persisting"


@pytest.mark.asyncio
async def test_concurrent_runs_for_one_date_are_serialized() -> None:
    store = InMemoryTrendStore()
    chart = _chart()
    pipeline = _pipeline(store, chart)

    first, second = await asyncio.gather(pipeline.run(TARGET), pipeline.run(TARGET))

    assert first.run_id == second.run_id
    assert store.run_by_id(first.run_id).status == "success"
    assert chart.calls == [TARGET, TARGET - timedelta(days=1)] * 2


@pytest.mark.asyncio
async def test_run_locks_are_released_after_runs_finish() -> None:
    store = InMemoryTrendStore()
    pipeline = _pipeline(store, _chart())

    await asyncio.gather(pipeline.run(TARGET), pipeline.run(TARGET), pipeline.run(TARGET + timedelta(days=1)))

    assert pipeline._run_locks == {}
    assert pipeline._run_lock_users == {}

    failing = _pipeline(store, FakeChart())
    with pytest.raises(SourceUnavailable):
        await failing.run(TARGET)
    assert failing._run_locks == {}
