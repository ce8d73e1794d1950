"""macfleet telemetry library."""

from .logger import new_logger
from .metrics import (
    convergence_attempts_total,
    convergence_backoff_seconds,
    convergence_correction_failures_total,
    convergence_corrections_total,
)

__all__ = [
    "new_logger",
    "convergence_attempts_total",
    "convergence_corrections_total",
    "convergence_correction_failures_total",
    "convergence_backoff_seconds",
]
