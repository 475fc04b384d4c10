from __future__ import annotations

from datetime import date, datetime, timezone

from movie_trends.utils.dates import default_target_date, to_ymd, window_days


def test_default_target_date_is_yesterday_in_seoul() -> None:
    # 01:00 on the 19th in Seoul
    now = datetime(2026, 10, 18, 16, 0, tzinfo=timezone.utc)
    assert default_target_date("Asia/Seoul", now=now) == date(2026, 10, 18)

    # 23:00 on the 18th in Seoul
    now = datetime(2026, 10, 18, 14, 0, tzinfo=timezone.utc)
    assert default_target_date("Asia/Seoul", now=now) == date(2026, 10, 17)


def test_window_days_walks_backwards_across_month_boundary() -> None:
    assert window_days(date(2026, 3, 2), 3) == [
        date(2026, 3, 2),
        date(2026, 3, 1),
        date(2026, 2, 28),
    ]
    assert window_days(date(2026, 3, 2), 0) == []


def test_to_ymd() -> None:
    assert to_ymd(date(2026, 1, 5)) == "20260105"
