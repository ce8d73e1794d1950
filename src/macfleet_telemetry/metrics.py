"""OpenTelemetry 収束ループメトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("macfleet", version="0.1.0")

convergence_attempts_total = _meter.create_counter(
    name="convergence_attempts_total",
    description="Total number of convergence attempts started",
    unit="1",
)

convergence_corrections_total = _meter.create_counter(
    name="convergence_corrections_total",
    description="Total number of corrective actions invoked",
    unit="1",
)

convergence_correction_failures_total = _meter.create_counter(
    name="convergence_correction_failures_total",
    description="Total number of corrective actions that raised",
    unit="1",
)

convergence_backoff_seconds = _meter.create_histogram(
    name="convergence_backoff_seconds",
    description="Backoff delay slept between convergence attempts",
    unit="s",
)
