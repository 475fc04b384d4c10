"""Topic resolution and alias history."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.db.models import MediaType, TrendSource
from movie_trends.logging import get_logger
from movie_trends.repositories.trend_seeds import TrendSeedRepository
from movie_trends.repositories.trend_topics import (
    AliasUpsertInput,
    TopicUpsertInput,
    TrendTopicRepository,
)
from movie_trends.services.concurrency import map_limit
from movie_trends.services.trend_types import SeedRow
from movie_trends.utils.titles import normalize_title


def split_external_id_groups(seeds: list[SeedRow]) -> tuple[list[SeedRow], list[SeedRow]]:
    """Split seeds into (first per external id or without one, remaining group members)."""
    leaders: list[SeedRow] = []
    followers: list[SeedRow] = []
    seen: set[int] = set()
    for seed in seeds:
        external_id = seed.external_id
        if external_id is None or not normalize_title(seed.keyword):
            leaders.append(seed)
        elif external_id in seen:
            followers.append(seed)
        else:
            seen.add(external_id)
            leaders.append(seed)
    return leaders, followers


class TopicResolver:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        topics_repo: TrendTopicRepository | None = None,
        seeds_repo: TrendSeedRepository | None = None,
        concurrency: int = 4,
        alias_confidence: float = 0.7,
        source: str = TrendSource.KOBIS,
        media_type: str = MediaType.MOVIE,
    ) -> None:
        self._session_factory = session_factory
        self._topics_repo = topics_repo or TrendTopicRepository()
        self._seeds_repo = seeds_repo or TrendSeedRepository()
        self._concurrency = concurrency
        self._alias_confidence = alias_confidence
        self._source = str(source)
        self._media_type = str(media_type)
        self._log = get_logger(__name__)

    async def resolve_topics(self, seeds: list[SeedRow]) -> dict[int, int]:
        topic_map: dict[int, int] = {}
        # Later seeds of an external id group run once the first one has created the topic.
        for batch in split_external_id_groups(seeds):
            resolved = await map_limit(batch, self._concurrency, self.resolve_seed)
            for seed, topic_id in zip(batch, resolved):
                seed.topic_id = topic_id
                if topic_id is not None:
                    topic_map[seed.id] = topic_id
        self._log.info(
            "topics.resolved",
            seeds=len(seeds),
            linked=len(topic_map),
            topics=len(set(topic_map.values())),
        )
        return topic_map

    async def resolve_seed(self, seed: SeedRow) -> int | None:
        title = seed.keyword.strip()
        normalized = normalize_title(title)
        if not normalized:
            return None

        async with self._session_factory() as session:
            async with session.begin():
                topic_id: int | None = None
                if seed.external_id is not None:
                    topic_id = await self._topics_repo.find_id_by_external_id(
                        session,
                        external_id=seed.external_id,
                        media_type=self._media_type,
                    )
                if topic_id is None:
                    topic_id = await self._topics_repo.upsert(
                        session,
                        item=TopicUpsertInput(
                            media_type=self._media_type,
                            normalized_title=normalized,
                            canonical_title=title,
                            external_id=seed.external_id,
                            year=seed.year,
                        ),
                    )
                await self._seeds_repo.set_topic(session, seed_id=seed.id, topic_id=topic_id)
                await self._topics_repo.upsert_alias(
                    session,
                    item=AliasUpsertInput(
                        topic_id=topic_id,
                        alias=title,
                        normalized_alias=normalized,
                        source=self._source,
                        confidence=self._alias_confidence,
                    ),
                )
        return topic_id
