from __future__ import annotations

import structlog

from movie_trends.logging import run_context


def test_run_context_binds_fields_for_the_block_only() -> None:
    with run_context(date="2026-10-18", region="KR"):
        assert structlog.contextvars.get_contextvars() == {"date": "2026-10-18", "region": "KR"}
    assert "date" not in structlog.contextvars.get_contextvars()
