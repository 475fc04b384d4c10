from __future__ import annotations

from datetime import date

import pytest

from movie_trends.repositories.trend_seed_ranks import SeedRankInput
from movie_trends.repositories.trend_seeds import SeedUpsertInput
from movie_trends.repositories.trend_topics import TopicUpsertInput
from movie_trends.services.rankings import RankedTrendsService
from trend_fakes import FakeSessionFactory, InMemoryTrendStore

OLDER = date(2026, 10, 17)
LATEST = date(2026, 10, 18)


async def _populate(store: InMemoryTrendStore) -> dict[str, int]:
    ids: dict[str, int] = {}
    for keyword, rank in (("기생충", 1), ("Parasite", 2), ("Avatar", 3)):
        seed = await store.seeds_repo.upsert(
            None,
            item=SeedUpsertInput(
                keyword=keyword,
                source="kobis",
                media_type="movie",
                year=None,
                rank=rank,
                audience=0,
            ),
        )
        ids[keyword] = seed.id

    topic_id = await store.topics_repo.upsert(
        None,
        item=TopicUpsertInput(
            media_type="movie",
            normalized_title="기생충",
            canonical_title="기생충",
            external_id=496243,
        ),
    )
    await store.seeds_repo.set_topic(None, seed_id=ids["기생충"], topic_id=topic_id)
    await store.seeds_repo.set_topic(None, seed_id=ids["Parasite"], topic_id=topic_id)

    await store.seed_ranks_repo.upsert_many(
        None,
        items=[
            SeedRankInput(seed_id=ids["Avatar"], date=OLDER, rank=1, score=0.9),
            SeedRankInput(seed_id=ids["기생충"], date=LATEST, rank=1, score=0.5),
            SeedRankInput(seed_id=ids["Parasite"], date=LATEST, rank=2, score=0.5),
            SeedRankInput(seed_id=ids["Avatar"], date=LATEST, rank=3, score=-0.2),
        ],
    )
    return ids


def _service(store: InMemoryTrendStore) -> RankedTrendsService:
    return RankedTrendsService(session_factory=FakeSessionFactory(), seed_ranks_repo=store.seed_ranks_repo)


@pytest.mark.asyncio
async def test_defaults_to_latest_ranked_date() -> None:
    store = InMemoryTrendStore()
    await _populate(store)

    ranked = await _service(store).get_ranked()

    assert ranked.date == LATEST
    assert [item.keyword for item in ranked.items] == ["기생충", "Parasite", "Avatar"]
    assert [item.rank for item in ranked.items] == [1, 2, 3]
    assert ranked.items[0].topic_title == "기생충"
    assert ranked.items[1].topic_id == ranked.items[0].topic_id
    assert ranked.items[2].topic_title is None


@pytest.mark.asyncio
async def test_explicit_date_and_limit_clamping() -> None:
    store = InMemoryTrendStore()
    await _populate(store)
    service = _service(store)

    older = await service.get_ranked(date=OLDER)
    assert older.date == OLDER
    assert [item.keyword for item in older.items] == ["Avatar"]

    assert len((await service.get_ranked(limit=0)).items) == 1
    assert len((await service.get_ranked(limit=1000)).items) == 3


@pytest.mark.asyncio
async def test_empty_store_returns_no_items() -> None:
    ranked = await _service(InMemoryTrendStore()).get_ranked(date=LATEST)

    assert ranked.date == LATEST
    assert ranked.items == []
