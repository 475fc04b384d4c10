"""Date helpers for daily trend runs."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def local_today(timezone_name: str, *, now: datetime | None = None) -> date:
    tz = ZoneInfo(timezone_name)
    current = now.astimezone(tz) if now else datetime.now(tz)
    return current.date()


def default_target_date(timezone_name: str, *, now: datetime | None = None) -> date:
    return local_today(timezone_name, now=now) - timedelta(days=1)


def window_days(target: date, days: int) -> list[date]:
    return [target - timedelta(days=offset) for offset in range(max(days, 0))]


def to_ymd(value: date) -> str:
    return value.strftime("%Y%m%d")
