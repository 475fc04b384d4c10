"""Multi-day chart window collection."""

from __future__ import annotations

from datetime import date

from movie_trends.logging import get_logger
from movie_trends.ports.sources import ChartEntry, ChartSourcePort, SourceUnavailable
from movie_trends.services.metrics import MetricsRegistry, metrics as default_metrics
from movie_trends.services.trend_types import WindowResult
from movie_trends.utils.dates import to_ymd, window_days


def merge_chart_entry(current: ChartEntry | None, incoming: ChartEntry) -> ChartEntry:
    """Fold two observations of one chart code into its best representative."""
    if current is None:
        return ChartEntry(
            rank=incoming.rank,
            name=incoming.name,
            code=incoming.code,
            open_date=incoming.open_date,
            cumulative_audience=incoming.cumulative_audience,
        )
    return ChartEntry(
        rank=min(current.rank, incoming.rank),
        name=current.name or incoming.name,
        code=current.code,
        open_date=current.open_date or incoming.open_date,
        cumulative_audience=max(current.cumulative_audience, incoming.cumulative_audience),
    )


class WindowCollector:
    def __init__(
        self,
        *,
        chart: ChartSourcePort,
        window_days: int,
        daily_top: int,
        candidate_limit: int,
        metrics_registry: MetricsRegistry | None = None,
    ) -> None:
        self._chart = chart
        self._window_days = max(1, window_days)
        self._daily_top = daily_top
        self._candidate_limit = max(1, candidate_limit)
        self._metrics = metrics_registry or default_metrics
        self._log = get_logger(__name__)

    async def collect(self, target: date) -> WindowResult:
        merged: dict[str, ChartEntry] = {}
        per_day_counts: dict[str, int] = {}

        for offset, day in enumerate(window_days(target, self._window_days)):
            ymd = to_ymd(day)
            try:
                entries = await self._chart.fetch_daily_top(day, limit=self._daily_top)
                entries = entries[: self._daily_top]
            except Exception as exc:
                if offset == 0:
                    raise SourceUnavailable(f"chart source failed for {ymd}: {exc}") from exc
                self._log.warning("window.day_failed", day=ymd, error=str(exc))
                self._metrics.inc_counter(
                    "trend_external_degraded_total", labels={"family": "chart"}
                )
                entries = []

            per_day_counts[ymd] = len(entries)
            for entry in entries:
                if not entry.code:
                    continue
                merged[entry.code] = merge_chart_entry(merged.get(entry.code), entry)

            if len(merged) >= self._candidate_limit:
                break

        if not merged:
            raise SourceUnavailable(f"chart source returned no candidates for {to_ymd(target)}")

        ordered = sorted(merged.values(), key=lambda item: (item.rank, -item.cumulative_audience))
        selected = ordered[: self._candidate_limit]
        self._log.info(
            "window.collected",
            target=to_ymd(target),
            days_fetched=len(per_day_counts),
            unique=len(merged),
            selected=len(selected),
        )
        return WindowResult(
            candidates=selected,
            per_day_counts=per_day_counts,
            unique_count=len(merged),
            selected_count=len(selected),
        )
