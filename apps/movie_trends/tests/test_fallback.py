from __future__ import annotations

from datetime import date

import pytest

from movie_trends.services.fallback import FallbackRanker, build_fallback_ranks
from movie_trends.services.trend_types import SeedRow
from trend_fakes import FakeSessionFactory, InMemoryTrendStore

TARGET = date(2026, 10, 18)


def _seed(seed_id: int, rank: int) -> SeedRow:
    return SeedRow(
        id=seed_id,
        keyword=f"seed-{seed_id}",
        year=None,
        external_id=None,
        topic_id=None,
        rank=rank,
        audience=0,
    )


def test_fallback_ranks_follow_chart_rank() -> None:
    rows = build_fallback_ranks(TARGET, [_seed(1, 4), _seed(2, 1)])

    assert [(row.seed_id, row.rank) for row in rows] == [(2, 1), (1, 2)]
    assert rows[0].score == 1.0
    assert rows[1].score == 0.5
    assert rows[1].breakdown == {"fallback": True, "kobis_rank": 4, "score": 0.5}


@pytest.mark.asyncio
async def test_fallback_ranker_persists_rows() -> None:
    store = InMemoryTrendStore()
    ranker = FallbackRanker(session_factory=FakeSessionFactory(), seed_ranks_repo=store.seed_ranks_repo)

    assert await ranker.persist(TARGET, [_seed(1, 2), _seed(2, 3)]) == 2
    assert set(store.seed_ranks) == {(1, TARGET), (2, TARGET)}
    assert await ranker.persist(TARGET, []) == 0
