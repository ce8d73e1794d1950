"""macfleet retry library."""

from .client import Corrector, StatusProbe
from .exceptions import ConvergenceError, ConvergenceErrorCodes
from .loop import ConvergenceLoop, with_convergence
from .memory import InMemoryCorrector, InMemoryStatusProbe
from .models import ConvergenceResult, LoopState, RetryConfig, RetryState, WorkCounts

__all__ = [
    "ConvergenceError",
    "ConvergenceErrorCodes",
    "ConvergenceLoop",
    "ConvergenceResult",
    "Corrector",
    "InMemoryCorrector",
    "InMemoryStatusProbe",
    "LoopState",
    "RetryConfig",
    "RetryState",
    "StatusProbe",
    "WorkCounts",
    "with_convergence",
]
