from __future__ import annotations

import asyncio
import sys
from datetime import date

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.adapters.kobis import KobisChartClient
from movie_trends.adapters.naver import NaverDataLabClient, NaverSearchClient
from movie_trends.adapters.tmdb import TmdbSearchClient
from movie_trends.adapters.youtube import YoutubeSearchClient
from movie_trends.config import Settings
from movie_trends.db.session import create_engine, create_session_factory
from movie_trends.logging import configure_logging, get_logger
from movie_trends.monitoring import configure_sentry
from movie_trends.services.ingestion import TrendIngestionPipeline
from movie_trends.services.metrics import metrics
from movie_trends.services.trend_types import IngestResult


def build_pipeline(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    http: httpx.AsyncClient,
) -> TrendIngestionPipeline:
    """Wire adapters; secondary sources without credentials are left out and zero-fill."""
    log = get_logger(__name__)

    metadata = settings.metadata
    search = None
    if metadata.api_key:
        search = TmdbSearchClient(
            http=http,
            api_key=metadata.api_key,
            base_url=metadata.base_url,
            language=metadata.language,
            region=metadata.region,
            include_adult=metadata.include_adult,
            timeout_seconds=metadata.timeout_seconds,
        )

    mentions = None
    if settings.mentions.client_id and settings.mentions.client_secret:
        mentions = NaverSearchClient(
            http=http,
            client_id=settings.mentions.client_id,
            client_secret=settings.mentions.client_secret,
            base_url=settings.mentions.base_url,
            timeout_seconds=settings.mentions.timeout_seconds,
        )

    interest = None
    if settings.interest.client_id and settings.interest.client_secret:
        interest = NaverDataLabClient(
            http=http,
            client_id=settings.interest.client_id,
            client_secret=settings.interest.client_secret,
            url=settings.interest.url,
            timeout_seconds=settings.interest.timeout_seconds,
        )

    videos = None
    if settings.video.api_key:
        videos = YoutubeSearchClient(
            http=http,
            api_key=settings.video.api_key,
            url=settings.video.url,
            region_code=settings.video.region_code,
            max_results=settings.video.max_results,
            timeout_seconds=settings.video.timeout_seconds,
        )

    log.info(
        "pipeline.sources",
        metadata=search is not None,
        mentions=mentions is not None,
        interest=interest is not None,
        videos=videos is not None,
    )
    return TrendIngestionPipeline(
        settings=settings,
        session_factory=session_factory,
        chart=KobisChartClient(
            http=http,
            api_key=settings.chart.api_key,
            base_url=settings.chart.base_url,
            timeout_seconds=settings.chart.timeout_seconds,
        ),
        search=search,
        mentions=mentions,
        interest=interest,
        videos=videos,
    )


def parse_target_date(value: str | None) -> date | None:
    if not value:
        return None
    text = value.strip()
    if len(text) == 8 and text.isdigit():
        return date(int(text[:4]), int(text[4:6]), int(text[6:]))
    return date.fromisoformat(text)


async def run_once(settings: Settings, *, target: date | None = None) -> IngestResult:
    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    try:
        async with httpx.AsyncClient(follow_redirects=True) as http:
            pipeline = build_pipeline(settings, session_factory, http)
            return await pipeline.run(target)
    finally:
        await engine.dispose()


async def _run(argv: list[str]) -> int:
    try:
        settings = Settings()
    except ValidationError as exc:
        print("Invalid configuration:", file=sys.stderr)
        print(exc, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    configure_sentry(dsn=settings.sentry_dsn)
    log = get_logger(__name__)
    log.info("boot", settings=settings.public_dict())

    try:
        target = parse_target_date(argv[0] if argv else None)
    except ValueError:
        log.error("boot.invalid_date", value=argv[0])
        return 2

    try:
        result = await run_once(settings, target=target)
    except Exception:
        log.exception("ingest.aborted")
        return 1
    finally:
        log.debug("metrics", text=metrics.render())

    log.info(
        "ingest.result",
        date=result.date.isoformat(),
        total=result.total,
        fallback=result.fallback,
    )
    return 0


def main() -> int:
    return asyncio.run(_run(sys.argv[1:]))


if __name__ == "__main__":
    raise SystemExit(main())
