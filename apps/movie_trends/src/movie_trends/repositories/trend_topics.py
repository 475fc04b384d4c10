"""Trend topic and alias repository."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from movie_trends.db.models import TrendTopic, TrendTopicAlias


@dataclass(slots=True)
class TopicUpsertInput:
    media_type: str
    normalized_title: str
    canonical_title: str
    external_id: int | None = None
    year: int | None = None


@dataclass(slots=True)
class AliasUpsertInput:
    topic_id: int
    alias: str
    normalized_alias: str
    source: str
    confidence: float


class TrendTopicRepository:
    async def find_id_by_external_id(
        self,
        session: AsyncSession,
        *,
        external_id: int,
        media_type: str,
    ) -> int | None:
        result = await session.execute(
            select(TrendTopic.id)
            .where(TrendTopic.external_id == external_id)
            .where(TrendTopic.media_type == media_type)
            .order_by(TrendTopic.id.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def upsert(self, session: AsyncSession, *, item: TopicUpsertInput) -> int:
        stmt = insert(TrendTopic).values(
            media_type=item.media_type,
            normalized_title=item.normalized_title,
            canonical_title=item.canonical_title,
            external_id=item.external_id,
            year=item.year,
        )
        # known ids and years are never cleared by a seed that lacks them
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendTopic.media_type, TrendTopic.normalized_title],
            set_={
                "canonical_title": stmt.excluded.canonical_title,
                "external_id": func.coalesce(stmt.excluded.external_id, TrendTopic.external_id),
                "year": func.coalesce(stmt.excluded.year, TrendTopic.year),
                "updated_at": func.now(),
            },
        )
        result = await session.execute(stmt.returning(TrendTopic.id))
        return int(result.scalar_one())

    async def upsert_alias(self, session: AsyncSession, *, item: AliasUpsertInput) -> None:
        stmt = insert(TrendTopicAlias).values(
            topic_id=item.topic_id,
            alias=item.alias,
            normalized_alias=item.normalized_alias,
            source=item.source,
            confidence=item.confidence,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendTopicAlias.topic_id, TrendTopicAlias.normalized_alias],
            set_={
                "alias": stmt.excluded.alias,
                "source": stmt.excluded.source,
                "confidence": stmt.excluded.confidence,
                "updated_at": func.now(),
            },
        )
        await session.execute(stmt)
