"""Title normalization helpers."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[~`!@#$%^&*()_+\-={}\[\]|\\:;\"'<>,.?/·•…：]")
_ISO_DATE_RE = re.compile(r"^(\d{4})-\d{2}-\d{2}$")


def normalize_title(value: str) -> str:
    lowered = value.lower()
    compact = _WHITESPACE_RE.sub("", lowered)
    return _PUNCT_RE.sub("", compact)


def titles_overlap(candidate: str, query: str) -> bool:
    if not candidate or not query:
        return False
    return candidate == query or candidate in query or query in candidate


def year_from_iso_date(value: str | None) -> int | None:
    if not value:
        return None
    match = _ISO_DATE_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))


def safe_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else default
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return default
        try:
            return int(float(text))
        except ValueError:
            return default
    return default


def safe_float(value: object, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return number
