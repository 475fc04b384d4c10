"""Seed-level rank projection repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from movie_trends.db.models import JsonDict, TrendSeed, TrendSeedRank


@dataclass(slots=True)
class SeedRankInput:
    seed_id: int
    date: date
    rank: int
    score: float
    breakdown: JsonDict | None = None


class TrendSeedRankRepository:
    async def upsert_many(self, session: AsyncSession, *, items: list[SeedRankInput]) -> int:
        for item in items:
            stmt = insert(TrendSeedRank).values(
                seed_id=item.seed_id,
                date=item.date,
                rank=item.rank,
                score=item.score,
                breakdown=item.breakdown,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[TrendSeedRank.seed_id, TrendSeedRank.date],
                set_={
                    "rank": stmt.excluded.rank,
                    "score": stmt.excluded.score,
                    "breakdown": stmt.excluded.breakdown,
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)
        return len(items)

    async def latest_date(
        self,
        session: AsyncSession,
        *,
        source: str,
        media_type: str,
    ) -> date | None:
        result = await session.execute(
            select(func.max(TrendSeedRank.date))
            .join(TrendSeed, TrendSeed.id == TrendSeedRank.seed_id)
            .where(TrendSeed.source == source)
            .where(TrendSeed.media_type == media_type)
        )
        return result.scalar_one_or_none()

    async def list_ranked(
        self,
        session: AsyncSession,
        *,
        day: date,
        source: str,
        media_type: str,
        limit: int,
    ) -> list[TrendSeedRank]:
        result = await session.execute(
            select(TrendSeedRank)
            .join(TrendSeed, TrendSeed.id == TrendSeedRank.seed_id)
            .where(TrendSeedRank.date == day)
            .where(TrendSeed.source == source)
            .where(TrendSeed.media_type == media_type)
            .options(selectinload(TrendSeedRank.seed).selectinload(TrendSeed.topic))
            .order_by(TrendSeedRank.score.desc(), TrendSeedRank.rank.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
