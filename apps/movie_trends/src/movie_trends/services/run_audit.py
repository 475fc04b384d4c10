"""Ingest run lifecycle and snapshot audit trail."""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.db.models import JsonDict
from movie_trends.logging import get_logger
from movie_trends.repositories.ingest_runs import TrendIngestRunRepository

ERROR_MAX_LENGTH = 4000


class RunAuditor:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        region: str,
        runs_repo: TrendIngestRunRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._region = region
        self._runs_repo = runs_repo or TrendIngestRunRepository()
        self._log = get_logger(__name__)

    @property
    def region(self) -> str:
        return self._region

    async def start(self, day: date) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                return await self._runs_repo.ensure_running(session, day=day, region=self._region)

    async def finish_success(self, run_id: int, *, meta: JsonDict) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await self._runs_repo.mark_success(session, run_id=run_id, meta=meta)

    async def finish_failed(self, run_id: int, *, error: str, meta: JsonDict | None = None) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await self._runs_repo.mark_failed(
                    session,
                    run_id=run_id,
                    error=error[:ERROR_MAX_LENGTH],
                    meta=meta,
                )

    async def snapshot(
        self,
        run_id: int,
        *,
        source: str,
        endpoint: str | None = None,
        request: JsonDict | None = None,
        response: JsonDict | None = None,
    ) -> bool:
        """Store one audit snapshot; failures are logged and swallowed."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._runs_repo.add_snapshot(
                        session,
                        run_id=run_id,
                        source=source,
                        endpoint=endpoint,
                        request=request,
                        response=response,
                    )
        except Exception:
            self._log.exception("snapshot.store_failed", run_id=run_id, source=source)
            return False
        return True
