from __future__ import annotations

from movie_trends.utils.titles import (
    normalize_title,
    safe_float,
    safe_int,
    titles_overlap,
    year_from_iso_date,
)


def test_normalize_title_strips_case_whitespace_and_punctuation() -> None:
    assert normalize_title("Spider-Man: No Way Home") == "spidermannowayhome"
    assert normalize_title("  기생충 ") == "기생충"
    assert normalize_title("해리 포터와 마법사의 돌…") == "해리포터와마법사의돌"
    assert normalize_title("!!! ???") == ""


def test_titles_overlap_requires_non_empty_values() -> None:
    assert titles_overlap("avatarthewayofwater", "avatar")
    assert titles_overlap("avatar", "avatarthewayofwater")
    assert not titles_overlap("", "avatar")
    assert not titles_overlap("parasite", "기생충")


def test_year_from_iso_date_accepts_only_full_iso_dates() -> None:
    assert year_from_iso_date("2019-05-30") == 2019
    assert year_from_iso_date("2019/05/30") is None
    assert year_from_iso_date("2019") is None
    assert year_from_iso_date("") is None
    assert year_from_iso_date(None) is None


def test_safe_numbers_fall_back_on_garbage() -> None:
    assert safe_int("1,234") == 1234
    assert safe_int("12") == 12
    assert safe_int("abc", 999) == 999
    assert safe_int(None, 7) == 7
    assert safe_int(True, 3) == 3
    assert safe_float("3.5") == 3.5
    assert safe_float("nan", 1.0) == 1.0
    assert safe_float(object()) == 0.0
