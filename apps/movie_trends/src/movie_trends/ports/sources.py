"""Ports for the external trend collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol


class SourceError(Exception):
    """Base error raised by external source adapters."""


class SourceUnavailable(SourceError):
    """Raised when the primary chart source cannot provide candidates."""


class SourceDegraded(SourceError):
    """Raised when a secondary source call fails or returns malformed data."""


class MissingCredentials(SourceError):
    """Raised when an adapter is invoked without its credentials."""


@dataclass(slots=True)
class ChartEntry:
    rank: int
    name: str
    code: str
    open_date: str
    cumulative_audience: int


@dataclass(slots=True)
class MovieCandidate:
    id: int
    title: str
    alt_title: str | None = None
    popularity: float = 0.0
    vote_count: int = 0
    release_date: str | None = None


@dataclass(slots=True)
class VideoSearchResult:
    total_results: int = 0
    items: list[dict] = field(default_factory=list)


class ChartSourcePort(Protocol):
    async def fetch_daily_top(self, day: date, *, limit: int) -> list[ChartEntry]: ...


class MetadataSearchPort(Protocol):
    async def search_by_title(self, title: str, *, year: int | None = None) -> list[MovieCandidate]: ...


class MentionCountPort(Protocol):
    async def count_mentions(self, category: str, query: str) -> int: ...


class InterestRatioPort(Protocol):
    async def interest_ratio(
        self,
        *,
        start: date,
        end: date,
        keywords: list[str],
    ) -> dict[str, float]: ...


class VideoSearchPort(Protocol):
    async def search_videos(self, query: str) -> VideoSearchResult: ...
