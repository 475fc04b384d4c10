from __future__ import annotations

import pytest

from movie_trends.services.metrics import MetricsRegistry


def test_render_outputs_prometheus_text() -> None:
    registry = MetricsRegistry()
    registry.inc_counter("trend_ingest_runs_total", labels={"status": "success"})
    registry.inc_counter("trend_ingest_runs_total", labels={"status": "success"})
    registry.inc_counter("trend_ingest_runs_total", labels={"status": "failed"})
    registry.set_gauge("trend_ingest_coverage", 0.5)

    text = registry.render()

    assert "# TYPE trend_ingest_coverage gauge" in text
    assert "trend_ingest_coverage 0.5" in text
    assert "# TYPE trend_ingest_runs_total counter" in text
    assert 'trend_ingest_runs_total{status="success"} 2.0' in text
    assert 'trend_ingest_runs_total{status="failed"} 1.0' in text
    assert text.endswith("\n")


def test_value_and_reset() -> None:
    registry = MetricsRegistry()
    registry.inc_counter("trend_external_degraded_total", labels={"family": "video"})

    assert registry.value("trend_external_degraded_total", labels={"family": "video"}) == 1.0
    assert registry.value("trend_external_degraded_total", labels={"family": "interest"}) == 0.0
    assert registry.value("unknown_metric") == 0.0

    registry.reset()
    assert registry.value("trend_external_degraded_total", labels={"family": "video"}) == 0.0


def test_metric_kind_cannot_change() -> None:
    registry = MetricsRegistry()
    registry.inc_counter("trend_ingest_runs_total")

    with pytest.raises(ValueError):
        registry.set_gauge("trend_ingest_runs_total", 1.0)


def test_label_values_are_escaped() -> None:
    registry = MetricsRegistry()
    registry.set_gauge("trend_label_probe", 1.0, labels={"name": 'say "hi"'})

    assert 'trend_label_probe{name="say \\"hi\\""} 1.0' in registry.render()
