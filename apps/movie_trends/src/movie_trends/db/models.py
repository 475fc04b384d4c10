"""Database models."""

from __future__ import annotations

import enum
import datetime as dt
from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from movie_trends.db.base import Base

JsonDict = dict[str, Any]


class TrendSource(enum.StrEnum):
    KOBIS = "kobis"
    TMDB = "tmdb"
    NAVER = "naver"
    YOUTUBE = "youtube"


class MediaType(enum.StrEnum):
    MOVIE = "movie"
    TV = "tv"
    ANIME = "anime"
    UNKNOWN = "unknown"


class IngestRunStatus(enum.StrEnum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [str(member.value) for member in enum_cls]


class TrendSeed(Base):
    __tablename__ = "trend_seeds"
    __table_args__ = (
        Index(
            "uq_trend_seeds_keyword_source_media_type",
            "keyword",
            "source",
            "media_type",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    media_type: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    external_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    topic_id: Mapped[int | None] = mapped_column(ForeignKey("trend_topics.id"), nullable=True)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, server_default="999")
    audience: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    raw_diagnostics: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    topic: Mapped[TrendTopic | None] = relationship("TrendTopic", back_populates="seeds")


class TrendTopic(Base):
    __tablename__ = "trend_topics"
    __table_args__ = (
        Index(
            "uq_trend_topics_media_type_normalized_title",
            "media_type",
            "normalized_title",
            unique=True,
        ),
        Index("ix_trend_topics_external_id_media_type", "external_id", "media_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    media_type: Mapped[str] = mapped_column(Text, nullable=False)
    external_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    canonical_title: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_title: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    seeds: Mapped[list[TrendSeed]] = relationship("TrendSeed", back_populates="topic")
    aliases: Mapped[list[TrendTopicAlias]] = relationship(
        "TrendTopicAlias", back_populates="topic"
    )


class TrendTopicAlias(Base):
    __tablename__ = "trend_topic_aliases"
    __table_args__ = (
        Index(
            "uq_trend_topic_aliases_topic_normalized_alias",
            "topic_id",
            "normalized_alias",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("trend_topics.id"), nullable=False)
    alias: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_alias: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    topic: Mapped[TrendTopic] = relationship("TrendTopic", back_populates="aliases")


class TrendMetric(Base):
    __tablename__ = "trend_metrics"
    __table_args__ = (
        Index(
            "uq_trend_metrics_topic_date_source_metric",
            "topic_id",
            "date",
            "source",
            "metric_name",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("trend_topics.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    metric_name: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    log_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    z_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    raw: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class TrendScore(Base):
    __tablename__ = "trend_scores"
    __table_args__ = (
        Index(
            "uq_trend_scores_topic_date_algo_version",
            "topic_id",
            "date",
            "algo_version",
            unique=True,
        ),
        Index("ix_trend_scores_date_algo_version_rank", "date", "algo_version", "rank"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("trend_topics.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    algo_version: Mapped[str] = mapped_column(Text, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    breakdown: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    topic: Mapped[TrendTopic] = relationship("TrendTopic")


class TrendSeedRank(Base):
    __tablename__ = "trend_seed_ranks"
    __table_args__ = (
        Index("uq_trend_seed_ranks_seed_date", "seed_id", "date", unique=True),
        Index("ix_trend_seed_ranks_date_score", "date", "score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seed_id: Mapped[int] = mapped_column(ForeignKey("trend_seeds.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    breakdown: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    seed: Mapped[TrendSeed] = relationship("TrendSeed")


class TrendIngestRun(Base):
    __tablename__ = "trend_ingest_runs"
    __table_args__ = (
        Index("uq_trend_ingest_runs_date_region", "date", "region", unique=True),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    region: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[IngestRunStatus] = mapped_column(
        Enum(
            IngestRunStatus,
            name="trend_ingest_run_status",
            values_callable=_enum_values,
        ),
        nullable=False,
        server_default=IngestRunStatus.RUNNING.value,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    snapshots: Mapped[list[TrendSnapshot]] = relationship(
        "TrendSnapshot", back_populates="run"
    )


class TrendSnapshot(Base):
    __tablename__ = "trend_snapshots"
    __table_args__ = (Index("ix_trend_snapshots_run_id", "run_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("trend_ingest_runs.id"), nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    endpoint: Mapped[str | None] = mapped_column(Text, nullable=True)
    request: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)
    response: Mapped[JsonDict | None] = mapped_column(JSONB, nullable=True)
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    run: Mapped[TrendIngestRun] = relationship("TrendIngestRun", back_populates="snapshots")
