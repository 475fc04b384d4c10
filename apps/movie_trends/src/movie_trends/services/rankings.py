"""Ranked trends read model."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.db.models import MediaType, TrendSource
from movie_trends.repositories.trend_seed_ranks import TrendSeedRankRepository
from movie_trends.utils.dates import default_target_date

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(slots=True)
class RankedTrendItem:
    id: int
    keyword: str
    source: str
    media_type: str
    rank: int
    score: float
    external_id: int | None
    year: int | None
    topic_id: int | None
    topic_title: str | None


@dataclass(slots=True)
class RankedTrends:
    date: dt.date
    items: list[RankedTrendItem]


class RankedTrendsService:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        timezone_name: str = "Asia/Seoul",
        seed_ranks_repo: TrendSeedRankRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timezone_name = timezone_name
        self._seed_ranks_repo = seed_ranks_repo or TrendSeedRankRepository()
        self._source = str(TrendSource.KOBIS)
        self._media_type = str(MediaType.MOVIE)

    async def get_ranked(
        self,
        *,
        date: dt.date | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> RankedTrends:
        limit = min(max(limit, 1), MAX_LIMIT)
        async with self._session_factory() as session:
            day = date
            if day is None:
                day = await self._seed_ranks_repo.latest_date(
                    session,
                    source=self._source,
                    media_type=self._media_type,
                )
            if day is None:
                day = default_target_date(self._timezone_name)

            rows = await self._seed_ranks_repo.list_ranked(
                session,
                day=day,
                source=self._source,
                media_type=self._media_type,
                limit=limit,
            )

        items = []
        for row in rows:
            seed = row.seed
            topic = seed.topic
            items.append(
                RankedTrendItem(
                    id=seed.id,
                    keyword=seed.keyword,
                    source=seed.source,
                    media_type=seed.media_type,
                    rank=row.rank,
                    score=row.score,
                    external_id=seed.external_id,
                    year=seed.year,
                    topic_id=seed.topic_id,
                    topic_title=topic.canonical_title if topic is not None else None,
                )
            )
        return RankedTrends(date=day, items=items)
