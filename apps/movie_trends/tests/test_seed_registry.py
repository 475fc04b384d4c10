from __future__ import annotations

from datetime import date

import pytest

from movie_trends.services.seed_registry import SeedRegistry
from trend_fakes import FakeSessionFactory, InMemoryTrendStore, chart_entry

TARGET = date(2026, 10, 18)


@pytest.mark.asyncio
async def test_register_skips_blank_and_repeated_keywords() -> None:
    store = InMemoryTrendStore()
    registry = SeedRegistry(session_factory=FakeSessionFactory(), seeds_repo=store.seeds_repo)

    rows = await registry.register(
        [
            chart_entry("A", " 기생충 ", 1, 1000, "2019-05-30"),
            chart_entry("B", "   ", 2),
            chart_entry("C", "Avatar", 3, 50, "2009/12/17"),
            chart_entry("D", "기생충", 4),
        ],
        target=TARGET,
        window_days=21,
    )

    assert [row.keyword for row in rows] == ["기생충", "Avatar"]
    assert rows[0].year == 2019
    assert rows[0].code == "A"
    assert rows[1].year is None
    assert len(store.seeds) == 2

    stored = store.seeds[("기생충", "kobis", "movie")]
    assert stored.rank == 1
    assert stored.audience == 1000
    assert stored.raw_diagnostics == {
        "movie_code": "A",
        "open_date": "2019-05-30",
        "audience": 1000,
        "chart_rank": 1,
        "window": {"target": "2026-10-18", "window_days": 21},
    }


@pytest.mark.asyncio
async def test_register_preserves_resolved_links() -> None:
    store = InMemoryTrendStore()
    registry = SeedRegistry(session_factory=FakeSessionFactory(), seeds_repo=store.seeds_repo)
    await registry.register([chart_entry("A", "기생충", 1)], target=TARGET, window_days=21)

    stored = store.seeds[("기생충", "kobis", "movie")]
    stored.external_id = 496243
    stored.topic_id = 7

    rows = await registry.register([chart_entry("A", "기생충", 5, 20)], target=TARGET, window_days=21)

    assert rows[0].id == stored.id
    assert rows[0].external_id == 496243
    assert rows[0].topic_id == 7
    assert rows[0].rank == 5
    assert stored.rank == 5
