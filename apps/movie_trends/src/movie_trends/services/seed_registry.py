"""Seed registration for window candidates."""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.db.models import MediaType, TrendSource
from movie_trends.logging import get_logger
from movie_trends.ports.sources import ChartEntry
from movie_trends.repositories.trend_seeds import SeedUpsertInput, TrendSeedRepository
from movie_trends.services.trend_types import SeedRow
from movie_trends.utils.titles import year_from_iso_date


class SeedRegistry:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        seeds_repo: TrendSeedRepository | None = None,
        source: str = TrendSource.KOBIS,
        media_type: str = MediaType.MOVIE,
    ) -> None:
        self._session_factory = session_factory
        self._seeds_repo = seeds_repo or TrendSeedRepository()
        self._source = str(source)
        self._media_type = str(media_type)
        self._log = get_logger(__name__)

    async def register(
        self,
        candidates: list[ChartEntry],
        *,
        target: date,
        window_days: int,
    ) -> list[SeedRow]:
        rows: list[SeedRow] = []
        seen: set[str] = set()

        async with self._session_factory() as session:
            async with session.begin():
                for entry in candidates:
                    keyword = entry.name.strip()
                    # candidates arrive best-first, so a repeated keyword keeps its best rank
                    if not keyword or keyword in seen:
                        continue
                    seen.add(keyword)

                    seed = await self._seeds_repo.upsert(
                        session,
                        item=SeedUpsertInput(
                            keyword=keyword,
                            source=self._source,
                            media_type=self._media_type,
                            year=year_from_iso_date(entry.open_date),
                            rank=entry.rank,
                            audience=entry.cumulative_audience,
                            raw_diagnostics={
                                "movie_code": entry.code,
                                "open_date": entry.open_date,
                                "audience": entry.cumulative_audience,
                                "chart_rank": entry.rank,
                                "window": {
                                    "target": target.isoformat(),
                                    "window_days": window_days,
                                },
                            },
                        ),
                    )
                    rows.append(
                        SeedRow(
                            id=seed.id,
                            keyword=keyword,
                            year=seed.year,
                            external_id=seed.external_id,
                            topic_id=seed.topic_id,
                            rank=entry.rank,
                            audience=entry.cumulative_audience,
                            code=entry.code,
                        )
                    )

        self._log.info("seeds.registered", count=len(rows), skipped=len(candidates) - len(rows))
        return rows
