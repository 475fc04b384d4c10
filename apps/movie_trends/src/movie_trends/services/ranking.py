"""Coverage-adaptive z-score ranking of topic aggregates."""

from __future__ import annotations

import math
from dataclasses import dataclass

from movie_trends.config import TrendScoringSettings
from movie_trends.db.models import JsonDict
from movie_trends.services.trend_types import (
    RankingResult,
    ScoredTopic,
    ScoreWeights,
    TopicAggregate,
    TopicMetricValues,
)

CATEGORY_LABELS = {"cafearticle": "cafe"}


@dataclass(slots=True, frozen=True)
class ZParams:
    mean: float
    std: float


def z_params(values: list[float]) -> ZParams:
    if not values:
        return ZParams(mean=0.0, std=1.0)
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    std = math.sqrt(variance)
    return ZParams(mean=mean, std=std or 1.0)


def z_score(value: float, params: ZParams) -> float:
    return (value - params.mean) / (params.std or 1.0)


def log_score(value: float) -> float:
    return math.log10(max(0.0, value) + 1)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def inv_sqrt_rank(rank: int) -> float:
    return 1 / math.sqrt(max(1, rank))


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def compute_coverage(topics: list[TopicAggregate]) -> float:
    if not topics:
        return 0.0
    covered = sum(1 for topic in topics if topic.has_external_signal)
    return covered / len(topics)


def compute_weights(coverage: float, settings: TrendScoringSettings) -> ScoreWeights:
    if coverage >= settings.coverage_threshold:
        primary = settings.primary_weight_high_coverage
    else:
        primary = settings.primary_weight_low_coverage
    base_sum = settings.interest_base + settings.mentions_base + settings.video_base
    scale = (1 - primary) / base_sum
    return ScoreWeights(
        primary=primary,
        interest=settings.interest_base * scale,
        mentions=settings.mentions_base * scale,
        video=settings.video_base * scale,
    )


class TrendScorer:
    def __init__(self, *, settings: TrendScoringSettings) -> None:
        self._settings = settings

    @property
    def algo_version(self) -> str:
        return self._settings.algo_version

    def score(self, topics: list[TopicAggregate]) -> RankingResult:
        coverage = compute_coverage(topics)
        weights = compute_weights(coverage, self._settings)

        primary_params = z_params([inv_sqrt_rank(t.best_rank) for t in topics])
        interest_params = z_params([t.interest_ratio for t in topics])
        mentions_params = z_params([log_score(t.mentions_total) for t in topics])
        video_params = z_params([log_score(t.video_total) for t in topics])
        band = self._settings.primary_z_clamp

        scored: list[ScoredTopic] = []
        for topic in topics:
            primary_value = inv_sqrt_rank(topic.best_rank)
            primary_z_raw = z_score(primary_value, primary_params)
            mentions_log = log_score(topic.mentions_total)
            video_log = log_score(topic.video_total)
            values = TopicMetricValues(
                inv_rank=1 / max(1, topic.best_rank),
                inv_sqrt_rank=primary_value,
                primary_z_raw=primary_z_raw,
                primary_z=clamp(primary_z_raw, -band, band),
                interest_z=z_score(topic.interest_ratio, interest_params),
                mentions_log=mentions_log,
                mentions_z=z_score(mentions_log, mentions_params),
                video_log=video_log,
                video_z=z_score(video_log, video_params),
            )
            score = (
                weights.primary * values.primary_z
                + weights.interest * values.interest_z
                + weights.mentions * values.mentions_z
                + weights.video * values.video_z
            )
            scored.append(
                ScoredTopic(
                    aggregate=topic,
                    values=values,
                    score=score,
                    breakdown=self._breakdown(topic, values, coverage, weights),
                )
            )

        # sorted() is stable: ties keep aggregation order
        ranked = sorted(scored, key=lambda item: -item.score)
        for position, item in enumerate(ranked, start=1):
            item.rank = position
        return RankingResult(topics=ranked, coverage=coverage, weights=weights)

    def _breakdown(
        self,
        topic: TopicAggregate,
        values: TopicMetricValues,
        coverage: float,
        weights: ScoreWeights,
    ) -> JsonDict:
        naver: JsonDict = {
            category_label(category): count for category, count in topic.mentions.items()
        }
        naver.update(
            {
                "total_mentions": topic.mentions_total,
                "total_mentions_log": {"value": values.mentions_log, "z": values.mentions_z},
                "datalab_ratio": {"value": topic.interest_ratio, "z": values.interest_z},
            }
        )
        return {
            "algo_version": self._settings.algo_version,
            "coverage": coverage,
            "weights": weights.as_dict(),
            "seeds": list(topic.seeds),
            "metrics": {
                "kobis": {
                    "rank": topic.best_rank,
                    "inv_rank": values.inv_rank,
                    "inv_sqrt_rank": values.inv_sqrt_rank,
                    "z_raw": values.primary_z_raw,
                    "z_used": values.primary_z,
                    "audience": topic.best_audience,
                },
                "naver": naver,
                "youtube": {
                    "total_results": {
                        "value": topic.video_total,
                        "log": values.video_log,
                        "z": values.video_z,
                    },
                    "items_count": topic.video_items,
                },
            },
        }
