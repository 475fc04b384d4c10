"""In-process counters and gauges with Prometheus text rendering."""

from __future__ import annotations

from threading import Lock

LabelKey = tuple[tuple[str, str], ...]
SeriesKey = tuple[str, LabelKey]


class MetricsRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._series: dict[str, dict[SeriesKey, float]] = {"counter": {}, "gauge": {}}
        self._kinds: dict[str, str] = {}

    def inc_counter(
        self, name: str, value: float = 1.0, *, labels: dict[str, str] | None = None
    ) -> None:
        key = _series_key(name, labels)
        with self._lock:
            self._register(name, "counter")
            series = self._series["counter"]
            series[key] = series.get(key, 0.0) + value

    def set_gauge(
        self, name: str, value: float, *, labels: dict[str, str] | None = None
    ) -> None:
        key = _series_key(name, labels)
        with self._lock:
            self._register(name, "gauge")
            self._series["gauge"][key] = float(value)

    def value(self, name: str, *, labels: dict[str, str] | None = None) -> float:
        key = _series_key(name, labels)
        with self._lock:
            kind = self._kinds.get(name)
            if kind is None:
                return 0.0
            return self._series[kind].get(key, 0.0)

    def reset(self) -> None:
        with self._lock:
            for series in self._series.values():
                series.clear()
            self._kinds.clear()

    def render(self) -> str:
        with self._lock:
            snapshot = {kind: dict(series) for kind, series in self._series.items()}
            kinds = dict(self._kinds)

        lines: list[str] = []
        for name in sorted(kinds):
            kind = kinds[name]
            lines.append(f"# TYPE {name} {kind}")
            rows = sorted(
                (labels, value)
                for (series_name, labels), value in snapshot[kind].items()
                if series_name == name
            )
            for labels, value in rows:
                lines.append(f"{name}{_format_labels(labels)} {value}")
        return "\n".join(lines) + "\n"

    def _register(self, name: str, kind: str) -> None:
        registered = self._kinds.setdefault(name, kind)
        if registered != kind:
            raise ValueError(f"metric {name} is already registered as a {registered}")


def _series_key(name: str, labels: dict[str, str] | None) -> SeriesKey:
    if not labels:
        return name, ()
    return name, tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _format_labels(labels: LabelKey) -> str:
    if not labels:
        return ""
    parts = []
    for key, value in labels:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        parts.append(f'{key}="{escaped}"')
    return "{" + ",".join(parts) + "}"


metrics = MetricsRegistry()
