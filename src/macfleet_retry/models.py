"""収束ループ設定と状態"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class WorkCounts:
    """未完了作業の件数（pending / failed）。"""

    pending: int = 0
    failed: int = 0

    def __post_init__(self) -> None:
        if self.pending < 0 or self.failed < 0:
            raise ValueError(
                f"Work counts must be non-negative: pending={self.pending}, failed={self.failed}"
            )

    @property
    def is_clear(self) -> bool:
        """未完了作業が残っていないか。"""
        return self.pending == 0 and self.failed == 0

    def improved_from(self, before: WorkCounts) -> bool:
        """before と比べて pending か failed のどちらかが減ったか。"""
        return self.pending < before.pending or self.failed < before.failed


@dataclass(frozen=True)
class RetryConfig:
    """収束リトライポリシー設定。"""

    max_attempts: int = 5
    initial_delay: float = 10.0
    max_delay: float = 300.0
    check_interval: float = 30.0
    force: bool = False
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.initial_delay <= 0:
            raise ValueError(f"initial_delay must be positive, got {self.initial_delay}")
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})"
            )
        if self.check_interval <= 0:
            raise ValueError(f"check_interval must be positive, got {self.check_interval}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def compute_delay(self, step: int) -> float:
        """step 回バックオフした後の待機秒数を計算する。"""
        return min(self.initial_delay * (self.multiplier**step), self.max_delay)


@dataclass
class RetryState:
    """1 回のループ実行中だけ存在する可変状態。"""

    attempt: int
    delay: float
    last_counts: WorkCounts | None = None

    @classmethod
    def initial(cls, config: RetryConfig) -> RetryState:
        return cls(attempt=1, delay=config.initial_delay)

    def advance(self, config: RetryConfig) -> None:
        """次の試行へ進め、待機時間を倍にする（max_delay で頭打ち）。"""
        self.attempt += 1
        self.delay = min(self.delay * config.multiplier, config.max_delay)


class LoopState(StrEnum):
    """収束ループの状態。"""

    IDLE = "IDLE"
    PROBING = "PROBING"
    DECIDING = "DECIDING"
    CORRECTING = "CORRECTING"
    SETTLING = "SETTLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopState.SUCCEEDED, LoopState.FAILED)


@dataclass
class ConvergenceResult:
    """収束ループの実行結果。"""

    succeeded: bool
    attempts: int
    corrections: int = 0
    correction_failures: int = 0
    last_counts: WorkCounts | None = None
    delays: list[float] = field(default_factory=list)
    already_converged: bool = False
