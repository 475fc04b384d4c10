"""Trend score repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from movie_trends.db.models import JsonDict, TrendScore


@dataclass(slots=True)
class ScoreInput:
    topic_id: int
    date: date
    algo_version: str
    rank: int
    score: float
    breakdown: JsonDict | None = None


class TrendScoreRepository:
    async def upsert_many(self, session: AsyncSession, *, items: list[ScoreInput]) -> int:
        for item in items:
            stmt = insert(TrendScore).values(
                topic_id=item.topic_id,
                date=item.date,
                algo_version=item.algo_version,
                rank=item.rank,
                score=item.score,
                breakdown=item.breakdown,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[TrendScore.topic_id, TrendScore.date, TrendScore.algo_version],
                set_={
                    "rank": stmt.excluded.rank,
                    "score": stmt.excluded.score,
                    "breakdown": stmt.excluded.breakdown,
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)
        return len(items)
