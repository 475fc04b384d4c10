"""Seed-only ranking used when no topic could be aggregated."""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.logging import get_logger
from movie_trends.repositories.trend_seed_ranks import SeedRankInput, TrendSeedRankRepository
from movie_trends.services.ranking import inv_sqrt_rank
from movie_trends.services.trend_types import SeedRow


def build_fallback_ranks(day: date, seeds: list[SeedRow]) -> list[SeedRankInput]:
    ordered = sorted(seeds, key=lambda seed: seed.rank)
    rows: list[SeedRankInput] = []
    for position, seed in enumerate(ordered, start=1):
        score = inv_sqrt_rank(seed.rank)
        rows.append(
            SeedRankInput(
                seed_id=seed.id,
                date=day,
                rank=position,
                score=score,
                breakdown={"fallback": True, "kobis_rank": seed.rank, "score": score},
            )
        )
    return rows


class FallbackRanker:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        seed_ranks_repo: TrendSeedRankRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._seed_ranks_repo = seed_ranks_repo or TrendSeedRankRepository()
        self._log = get_logger(__name__)

    async def persist(self, day: date, seeds: list[SeedRow]) -> int:
        rows = build_fallback_ranks(day, seeds)
        if rows:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._seed_ranks_repo.upsert_many(session, items=rows)
        self._log.warning("fallback.seed_only_rank", date=day.isoformat(), total=len(rows))
        return len(rows)
