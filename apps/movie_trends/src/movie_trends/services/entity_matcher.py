"""Heuristic matching of seeds to external movie ids."""

from __future__ import annotations

import math

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_trends.logging import get_logger
from movie_trends.ports.sources import MetadataSearchPort, MovieCandidate
from movie_trends.repositories.trend_seeds import TrendSeedRepository
from movie_trends.services.concurrency import map_limit
from movie_trends.services.lookup_cache import LookupCache
from movie_trends.services.metrics import MetricsRegistry, metrics as default_metrics
from movie_trends.services.trend_types import SeedRow
from movie_trends.utils.titles import normalize_title, titles_overlap, year_from_iso_date


def score_candidate(keyword: str, year: int | None, candidate: MovieCandidate) -> float:
    normalized_keyword = normalize_title(keyword)
    normalized_title = normalize_title(candidate.title or "")
    normalized_alt = normalize_title(candidate.alt_title or "")

    score = 0.0
    if normalized_title and normalized_title == normalized_keyword:
        score += 120
    elif titles_overlap(normalized_title, normalized_keyword):
        score += 70

    if titles_overlap(normalized_alt, normalized_keyword):
        score += 40

    if year:
        candidate_year = year_from_iso_date(candidate.release_date)
        if candidate_year is not None:
            diff = abs(candidate_year - year)
            if diff == 0:
                score += 35
            elif diff == 1:
                score += 15
            elif diff >= 3:
                score -= 15

    score += max(candidate.popularity, 0.0) * 0.05
    score += math.log10(max(candidate.vote_count, 0) + 1) * 3
    return score


def pick_best(
    keyword: str,
    year: int | None,
    candidates: list[MovieCandidate],
) -> tuple[MovieCandidate | None, float | None]:
    best: MovieCandidate | None = None
    best_score: float | None = None
    for candidate in candidates:
        score = score_candidate(keyword, year, candidate)
        if best_score is None or score > best_score:
            best, best_score = candidate, score
    return best, best_score


class EntityMatcher:
    def __init__(
        self,
        *,
        search: MetadataSearchPort | None,
        session_factory: async_sessionmaker[AsyncSession],
        cache: LookupCache | None = None,
        seeds_repo: TrendSeedRepository | None = None,
        concurrency: int = 2,
        accept_threshold: float = 60.0,
        metrics_registry: MetricsRegistry | None = None,
    ) -> None:
        self._search = search
        self._session_factory = session_factory
        self._cache = cache or LookupCache()
        self._seeds_repo = seeds_repo or TrendSeedRepository()
        self._concurrency = concurrency
        self._threshold = accept_threshold
        self._metrics = metrics_registry or default_metrics
        self._log = get_logger(__name__)

    async def match_seeds(self, seeds: list[SeedRow]) -> dict[int, int]:
        """Resolve external ids for unmatched seeds and store them in one transaction.

        Updates the given rows in place and returns ``{seed_id: external_id}``
        for the newly matched seeds.
        """
        targets = [seed for seed in seeds if seed.external_id is None]
        if not targets:
            return {}
        if self._search is None:
            self._log.info("matcher.skipped", reason="no_metadata_source", pending=len(targets))
            return {}

        found = await map_limit(
            targets,
            self._concurrency,
            lambda seed: self.resolve(seed.keyword, seed.year),
        )
        matched = {
            seed.id: external_id
            for seed, external_id in zip(targets, found)
            if external_id is not None
        }
        if matched:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._seeds_repo.set_external_ids(session, external_ids=matched)
            for seed in targets:
                if seed.id in matched:
                    seed.external_id = matched[seed.id]

        self._log.info("matcher.done", pending=len(targets), matched=len(matched))
        return matched

    async def resolve(self, keyword: str, year: int | None) -> int | None:
        query = keyword.strip()
        if not query:
            return None
        key = f"{normalize_title(query)}|{year or ''}"
        return await self._cache.get_or_set(key, lambda: self._find_best(query, year))

    async def _find_best(self, query: str, year: int | None) -> int | None:
        candidates = await self._safe_search(query, year)
        best, best_score = pick_best(query, year, candidates)
        accepted = best_score is not None and best_score >= self._threshold

        if not accepted and year:
            candidates = candidates + await self._safe_search(query, None)
            best, best_score = pick_best(query, year, candidates)
            accepted = best_score is not None and best_score >= self._threshold

        if best is None or not accepted:
            self._metrics.inc_counter("trend_match_rejected_total")
            self._log.info(
                "matcher.rejected",
                keyword=query,
                year=year,
                candidates=len(candidates),
                best_score=best_score,
            )
            return None
        return best.id

    async def _safe_search(self, query: str, year: int | None) -> list[MovieCandidate]:
        try:
            return await self._search.search_by_title(query, year=year)  # type: ignore[union-attr]
        except Exception as exc:
            self._metrics.inc_counter("trend_external_degraded_total", labels={"family": "metadata"})
            self._log.warning("matcher.search_failed", keyword=query, year=year, error=str(exc))
            return []
