"""Row builders for persisting a scored run."""

from __future__ import annotations

from datetime import date

from movie_trends.db.models import JsonDict, TrendSource
from movie_trends.repositories.trend_metrics import MetricInput
from movie_trends.repositories.trend_scores import ScoreInput
from movie_trends.repositories.trend_seed_ranks import SeedRankInput
from movie_trends.services.ranking import category_label, log_score
from movie_trends.services.trend_types import RankingResult, ScoredTopic, SeedRow


def build_score_inputs(day: date, ranking: RankingResult, *, algo_version: str) -> list[ScoreInput]:
    return [
        ScoreInput(
            topic_id=item.topic_id,
            date=day,
            algo_version=algo_version,
            rank=item.rank,
            score=item.score,
            breakdown=item.breakdown,
        )
        for item in ranking.topics
    ]


def build_metric_inputs(day: date, ranking: RankingResult) -> list[MetricInput]:
    rows: list[MetricInput] = []
    for item in ranking.topics:
        rows.extend(_topic_metrics(day, item))
    return rows


def _topic_metrics(day: date, item: ScoredTopic) -> list[MetricInput]:
    topic = item.aggregate
    values = item.values
    seeds: JsonDict = {"seeds": list(topic.seeds)}

    def metric(
        source: str,
        name: str,
        value: float,
        *,
        log_value: float | None = None,
        z_score: float | None = None,
        raw: JsonDict | None = None,
    ) -> MetricInput:
        return MetricInput(
            topic_id=topic.topic_id,
            date=day,
            source=source,
            metric_name=name,
            value=float(value),
            log_value=log_value,
            z_score=z_score,
            raw={**seeds, **(raw or {})},
        )

    kobis = str(TrendSource.KOBIS)
    naver = str(TrendSource.NAVER)
    youtube = str(TrendSource.YOUTUBE)
    rows = [
        metric(kobis, "kobis.inv_rank", values.inv_rank),
        metric(
            kobis,
            "kobis.inv_sqrt_rank",
            values.inv_sqrt_rank,
            z_score=values.primary_z,
            raw={"z_raw": values.primary_z_raw, "z_used": values.primary_z},
        ),
        metric(kobis, "kobis.audience", topic.best_audience),
        metric(naver, "naver.datalab_ratio", topic.interest_ratio, z_score=values.interest_z),
        metric(
            naver,
            "naver.total_mentions_log",
            values.mentions_log,
            z_score=values.mentions_z,
            raw={"total_mentions": topic.mentions_total},
        ),
    ]
    for category, count in topic.mentions.items():
        rows.append(
            metric(
                naver,
                f"naver.{category_label(category)}_total",
                count,
                log_value=log_score(count),
            )
        )
    rows.extend(
        [
            metric(
                youtube,
                "yt.total_results",
                topic.video_total,
                log_value=values.video_log,
                z_score=values.video_z,
            ),
            metric(youtube, "yt.items_count", topic.video_items),
        ]
    )
    return rows


def build_seed_rank_inputs(
    day: date,
    seeds: list[SeedRow],
    ranking: RankingResult,
) -> list[SeedRankInput]:
    """Project every topic score onto its member seeds, ranked by score."""
    by_topic = {item.topic_id: item for item in ranking.topics}
    projected: list[tuple[int, ScoredTopic]] = []
    for seed in seeds:
        if seed.topic_id is None:
            continue
        item = by_topic.get(seed.topic_id)
        if item is not None:
            projected.append((seed.id, item))

    projected.sort(key=lambda pair: -pair[1].score)
    return [
        SeedRankInput(
            seed_id=seed_id,
            date=day,
            rank=position,
            score=item.score,
            breakdown=item.breakdown,
        )
        for position, (seed_id, item) in enumerate(projected, start=1)
    ]
