"""Ingest run and snapshot repository."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from movie_trends.db.models import IngestRunStatus, JsonDict, TrendIngestRun, TrendSnapshot


class TrendIngestRunRepository:
    async def ensure_running(self, session: AsyncSession, *, day: date, region: str) -> int:
        stmt = insert(TrendIngestRun).values(
            date=day,
            region=region,
            status=IngestRunStatus.RUNNING,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendIngestRun.date, TrendIngestRun.region],
            set_={
                "status": IngestRunStatus.RUNNING,
                "error": None,
                "finished_at": None,
                "started_at": datetime.now(timezone.utc),
            },
        )
        result = await session.execute(stmt.returning(TrendIngestRun.id))
        return int(result.scalar_one())

    async def mark_success(
        self,
        session: AsyncSession,
        *,
        run_id: int,
        meta: JsonDict | None,
    ) -> None:
        await session.execute(
            update(TrendIngestRun)
            .where(TrendIngestRun.id == run_id)
            .values(
                status=IngestRunStatus.SUCCESS,
                finished_at=datetime.now(timezone.utc),
                error=None,
                meta=meta,
            )
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        *,
        run_id: int,
        error: str,
        meta: JsonDict | None,
    ) -> None:
        await session.execute(
            update(TrendIngestRun)
            .where(TrendIngestRun.id == run_id)
            .values(
                status=IngestRunStatus.FAILED,
                finished_at=datetime.now(timezone.utc),
                error=error,
                meta=meta,
            )
        )

    async def add_snapshot(
        self,
        session: AsyncSession,
        *,
        run_id: int,
        source: str,
        endpoint: str | None,
        request: JsonDict | None,
        response: JsonDict | None,
    ) -> None:
        session.add(
            TrendSnapshot(
                run_id=run_id,
                source=source,
                endpoint=endpoint,
                request=request,
                response=response,
            )
        )
        await session.flush()
