"""Ports."""

from movie_trends.ports.sources import (
    ChartEntry,
    ChartSourcePort,
    InterestRatioPort,
    MentionCountPort,
    MetadataSearchPort,
    MissingCredentials,
    MovieCandidate,
    SourceDegraded,
    SourceError,
    SourceUnavailable,
    VideoSearchPort,
    VideoSearchResult,
)

__all__ = [
    "ChartEntry",
    "ChartSourcePort",
    "InterestRatioPort",
    "MentionCountPort",
    "MetadataSearchPort",
    "MissingCredentials",
    "MovieCandidate",
    "SourceDegraded",
    "SourceError",
    "SourceUnavailable",
    "VideoSearchPort",
    "VideoSearchResult",
]
