"""Initial trend ingestion schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    run_status = sa.Enum("running", "success", "failed", name="trend_ingest_run_status")

    op.create_table(
        "trend_topics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("media_type", sa.Text(), nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("canonical_title", sa.Text(), nullable=False),
        sa.Column("normalized_title", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_topics_media_type_normalized_title",
        "trend_topics",
        ["media_type", "normalized_title"],
        unique=True,
    )
    op.create_index(
        "ix_trend_topics_external_id_media_type",
        "trend_topics",
        ["external_id", "media_type"],
        unique=False,
    )

    op.create_table(
        "trend_seeds",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("keyword", sa.Text(), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("media_type", sa.Text(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("external_id", sa.Integer(), nullable=True),
        sa.Column("topic_id", sa.Integer(), sa.ForeignKey("trend_topics.id"), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=False, server_default="999"),
        sa.Column("audience", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("raw_diagnostics", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_seeds_keyword_source_media_type",
        "trend_seeds",
        ["keyword", "source", "media_type"],
        unique=True,
    )

    op.create_table(
        "trend_topic_aliases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("topic_id", sa.Integer(), sa.ForeignKey("trend_topics.id"), nullable=False),
        sa.Column("alias", sa.Text(), nullable=False),
        sa.Column("normalized_alias", sa.Text(), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_topic_aliases_topic_normalized_alias",
        "trend_topic_aliases",
        ["topic_id", "normalized_alias"],
        unique=True,
    )

    op.create_table(
        "trend_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("topic_id", sa.Integer(), sa.ForeignKey("trend_topics.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("metric_name", sa.Text(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("log_value", sa.Float(), nullable=True),
        sa.Column("z_score", sa.Float(), nullable=True),
        sa.Column("raw", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_metrics_topic_date_source_metric",
        "trend_metrics",
        ["topic_id", "date", "source", "metric_name"],
        unique=True,
    )

    op.create_table(
        "trend_scores",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("topic_id", sa.Integer(), sa.ForeignKey("trend_topics.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("algo_version", sa.Text(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("breakdown", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_scores_topic_date_algo_version",
        "trend_scores",
        ["topic_id", "date", "algo_version"],
        unique=True,
    )
    op.create_index(
        "ix_trend_scores_date_algo_version_rank",
        "trend_scores",
        ["date", "algo_version", "rank"],
        unique=False,
    )

    op.create_table(
        "trend_seed_ranks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("seed_id", sa.Integer(), sa.ForeignKey("trend_seeds.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("breakdown", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_seed_ranks_seed_date",
        "trend_seed_ranks",
        ["seed_id", "date"],
        unique=True,
    )
    op.create_index(
        "ix_trend_seed_ranks_date_score",
        "trend_seed_ranks",
        ["date", "score"],
        unique=False,
    )

    op.create_table(
        "trend_ingest_runs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("region", sa.Text(), nullable=False),
        sa.Column("status", run_status, nullable=False, server_default="running"),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("meta", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_trend_ingest_runs_date_region",
        "trend_ingest_runs",
        ["date", "region"],
        unique=True,
    )

    op.create_table(
        "trend_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("run_id", sa.Integer(), sa.ForeignKey("trend_ingest_runs.id"), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=True),
        sa.Column("request", postgresql.JSONB(), nullable=True),
        sa.Column("response", postgresql.JSONB(), nullable=True),
        sa.Column("fetched_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index(
        "ix_trend_snapshots_run_id",
        "trend_snapshots",
        ["run_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_trend_snapshots_run_id", table_name="trend_snapshots")
    op.drop_table("trend_snapshots")

    op.drop_index("uq_trend_ingest_runs_date_region", table_name="trend_ingest_runs")
    op.drop_table("trend_ingest_runs")

    op.drop_index("ix_trend_seed_ranks_date_score", table_name="trend_seed_ranks")
    op.drop_index("uq_trend_seed_ranks_seed_date", table_name="trend_seed_ranks")
    op.drop_table("trend_seed_ranks")

    op.drop_index("ix_trend_scores_date_algo_version_rank", table_name="trend_scores")
    op.drop_index("uq_trend_scores_topic_date_algo_version", table_name="trend_scores")
    op.drop_table("trend_scores")

    op.drop_index("uq_trend_metrics_topic_date_source_metric", table_name="trend_metrics")
    op.drop_table("trend_metrics")

    op.drop_index("uq_trend_topic_aliases_topic_normalized_alias", table_name="trend_topic_aliases")
    op.drop_table("trend_topic_aliases")

    op.drop_index("uq_trend_seeds_keyword_source_media_type", table_name="trend_seeds")
    op.drop_table("trend_seeds")

    op.drop_index("ix_trend_topics_external_id_media_type", table_name="trend_topics")
    op.drop_index("uq_trend_topics_media_type_normalized_title", table_name="trend_topics")
    op.drop_table("trend_topics")

    op.execute("DROP TYPE IF EXISTS trend_ingest_run_status")
