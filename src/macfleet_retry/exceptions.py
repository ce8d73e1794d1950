"""retry ライブラリの例外型定義"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import WorkCounts


class ConvergenceErrorCodes:
    """ConvergenceError のエラーコード定数。"""

    BUDGET_EXHAUSTED: str = "BUDGET_EXHAUSTED"
    CORRECTION_FAILED: str = "CORRECTION_FAILED"


class ConvergenceError(Exception):
    """リトライ上限までに収束しなかった場合のエラー。"""

    def __init__(
        self,
        attempts: int,
        last_counts: WorkCounts | None = None,
        code: str = ConvergenceErrorCodes.BUDGET_EXHAUSTED,
    ) -> None:
        self.code = code
        self.attempts = attempts
        self.last_counts = last_counts
        msg = f"Did not converge after {attempts} attempts"
        if last_counts is not None:
            msg += f" ({last_counts.pending} pending, {last_counts.failed} failed)"
        super().__init__(msg)

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"
