"""Types shared by the trend ingestion stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date

from movie_trends.db.models import JsonDict
from movie_trends.ports.sources import ChartEntry


class IngestStage(enum.StrEnum):
    COLLECTING_CANDIDATES = "collecting_candidates"
    RESOLVING_SEEDS = "resolving_seeds"
    MATCHING_ENTITIES = "matching_entities"
    RESOLVING_TOPICS = "resolving_topics"
    COLLECTING_EXTERNAL_METRICS = "collecting_external_metrics"
    AGGREGATING = "aggregating"
    SCORING = "scoring"
    PERSISTING = "persisting"


@dataclass(slots=True)
class WindowResult:
    candidates: list[ChartEntry]
    per_day_counts: dict[str, int]
    unique_count: int
    selected_count: int


@dataclass(slots=True)
class SeedRow:
    id: int
    keyword: str
    year: int | None
    external_id: int | None
    topic_id: int | None
    rank: int
    audience: int
    code: str = ""


@dataclass(slots=True)
class MentionCounts:
    by_category: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_category.values())


@dataclass(slots=True)
class VideoStats:
    total_results: int = 0
    items_count: int = 0


@dataclass(slots=True)
class ExternalSignals:
    mentions: dict[str, MentionCounts] = field(default_factory=dict)
    interest: dict[str, float] = field(default_factory=dict)
    videos: dict[str, VideoStats] = field(default_factory=dict)

    def mentions_for(self, keyword: str) -> MentionCounts:
        return self.mentions.get(keyword) or MentionCounts()

    def interest_for(self, keyword: str) -> float:
        return self.interest.get(keyword, 0.0)

    def videos_for(self, keyword: str) -> VideoStats:
        return self.videos.get(keyword) or VideoStats()


@dataclass(slots=True)
class TopicAggregate:
    topic_id: int
    seeds: list[JsonDict]
    best_rank: int
    best_audience: int
    mentions: dict[str, int] = field(default_factory=dict)
    interest_ratio: float = 0.0
    video_total: int = 0
    video_items: int = 0

    @property
    def mentions_total(self) -> int:
        return sum(self.mentions.values())

    @property
    def has_external_signal(self) -> bool:
        return self.interest_ratio > 0 or self.video_total > 0 or self.mentions_total > 0


@dataclass(slots=True)
class ScoreWeights:
    primary: float
    interest: float
    mentions: float
    video: float

    @property
    def total(self) -> float:
        return self.primary + self.interest + self.mentions + self.video

    def as_dict(self) -> dict[str, float]:
        return {
            "kobis": self.primary,
            "datalab": self.interest,
            "naver": self.mentions,
            "youtube": self.video,
        }


@dataclass(slots=True)
class TopicMetricValues:
    inv_rank: float
    inv_sqrt_rank: float
    primary_z_raw: float
    primary_z: float
    interest_z: float
    mentions_log: float
    mentions_z: float
    video_log: float
    video_z: float


@dataclass(slots=True)
class ScoredTopic:
    aggregate: TopicAggregate
    values: TopicMetricValues
    score: float
    breakdown: JsonDict
    rank: int = 0

    @property
    def topic_id(self) -> int:
        return self.aggregate.topic_id


@dataclass(slots=True)
class RankingResult:
    topics: list[ScoredTopic]
    coverage: float
    weights: ScoreWeights


@dataclass(slots=True)
class IngestResult:
    date: date
    total: int
    run_id: int
    fallback: bool = False
