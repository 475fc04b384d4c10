"""Trend metric repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from movie_trends.db.models import JsonDict, TrendMetric


@dataclass(slots=True)
class MetricInput:
    topic_id: int
    date: date
    source: str
    metric_name: str
    value: float
    log_value: float | None = None
    z_score: float | None = None
    raw: JsonDict | None = None


class TrendMetricRepository:
    async def upsert_many(self, session: AsyncSession, *, items: list[MetricInput]) -> int:
        for item in items:
            stmt = insert(TrendMetric).values(
                topic_id=item.topic_id,
                date=item.date,
                source=item.source,
                metric_name=item.metric_name,
                value=item.value,
                log_value=item.log_value,
                z_score=item.z_score,
                raw=item.raw,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[
                    TrendMetric.topic_id,
                    TrendMetric.date,
                    TrendMetric.source,
                    TrendMetric.metric_name,
                ],
                set_={
                    "value": stmt.excluded.value,
                    "log_value": stmt.excluded.log_value,
                    "z_score": stmt.excluded.z_score,
                    "raw": stmt.excluded.raw,
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)
        return len(items)
