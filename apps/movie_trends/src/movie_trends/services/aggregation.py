"""Fold seed-level signals into topic-level aggregates."""

from __future__ import annotations

from movie_trends.services.trend_types import ExternalSignals, SeedRow, TopicAggregate


def aggregate_topics(seeds: list[SeedRow], signals: ExternalSignals) -> list[TopicAggregate]:
    """Group seeds by topic; a topic is as trending as its most trending alias.

    Seeds without a topic are left out. Topics keep the order in which their
    first seed appears.
    """
    grouped: dict[int, TopicAggregate] = {}
    for seed in seeds:
        if seed.topic_id is None:
            continue

        mentions = signals.mentions_for(seed.keyword).by_category
        interest = signals.interest_for(seed.keyword)
        video = signals.videos_for(seed.keyword)
        member = {"seed_id": seed.id, "keyword": seed.keyword}

        current = grouped.get(seed.topic_id)
        if current is None:
            grouped[seed.topic_id] = TopicAggregate(
                topic_id=seed.topic_id,
                seeds=[member],
                best_rank=seed.rank,
                best_audience=seed.audience,
                mentions=dict(mentions),
                interest_ratio=interest,
                video_total=video.total_results,
                video_items=video.items_count,
            )
            continue

        current.seeds.append(member)
        current.best_rank = min(current.best_rank, seed.rank)
        current.best_audience = max(current.best_audience, seed.audience)
        for category, count in mentions.items():
            current.mentions[category] = max(current.mentions.get(category, 0), count)
        current.interest_ratio = max(current.interest_ratio, interest)
        current.video_total = max(current.video_total, video.total_results)
        current.video_items = max(current.video_items, video.items_count)

    return list(grouped.values())
