"""Trend seed repository."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from movie_trends.db.models import JsonDict, TrendSeed


@dataclass(slots=True)
class SeedUpsertInput:
    keyword: str
    source: str
    media_type: str
    year: int | None
    rank: int
    audience: int
    raw_diagnostics: JsonDict | None = None


class TrendSeedRepository:
    async def upsert(self, session: AsyncSession, *, item: SeedUpsertInput) -> TrendSeed:
        stmt = insert(TrendSeed).values(
            keyword=item.keyword,
            source=item.source,
            media_type=item.media_type,
            year=item.year,
            rank=item.rank,
            audience=item.audience,
            raw_diagnostics=item.raw_diagnostics,
        )
        # external_id and topic_id survive re-ingestion
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendSeed.keyword, TrendSeed.source, TrendSeed.media_type],
            set_={
                "year": stmt.excluded.year,
                "rank": stmt.excluded.rank,
                "audience": stmt.excluded.audience,
                "raw_diagnostics": stmt.excluded.raw_diagnostics,
                "updated_at": func.now(),
            },
        )
        result = await session.scalars(
            stmt.returning(TrendSeed),
            execution_options={"populate_existing": True},
        )
        return result.one()

    async def set_external_ids(
        self,
        session: AsyncSession,
        *,
        external_ids: dict[int, int],
    ) -> int:
        updated = 0
        for seed_id, external_id in external_ids.items():
            await session.execute(
                update(TrendSeed)
                .where(TrendSeed.id == seed_id)
                .values(external_id=external_id)
            )
            updated += 1
        return updated

    async def set_topic(self, session: AsyncSession, *, seed_id: int, topic_id: int) -> None:
        await session.execute(
            update(TrendSeed).where(TrendSeed.id == seed_id).values(topic_id=topic_id)
        )
