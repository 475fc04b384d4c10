"""Database session helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, pool_pre_ping=True)


def create_session_factory(bind: str | AsyncEngine) -> async_sessionmaker[AsyncSession]:
    engine = bind if isinstance(bind, AsyncEngine) else create_engine(bind)
    return async_sessionmaker(engine, expire_on_commit=False)
