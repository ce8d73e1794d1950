"""インメモリ StatusProbe / Corrector 実装"""

from __future__ import annotations

from collections.abc import Iterable

from .client import Corrector, StatusProbe
from .models import WorkCounts


class InMemoryStatusProbe(StatusProbe):
    """テスト用インメモリプローブ。

    登録した件数を順番に返し、使い切った後は最後の値を返し続ける。
    """

    def __init__(self, readings: Iterable[tuple[int, int] | WorkCounts]) -> None:
        self._readings = [
            r if isinstance(r, WorkCounts) else WorkCounts(pending=r[0], failed=r[1])
            for r in readings
        ]
        if not self._readings:
            raise ValueError("InMemoryStatusProbe needs at least one reading")
        self.calls = 0

    def probe(self) -> WorkCounts:
        index = min(self.calls, len(self._readings) - 1)
        self.calls += 1
        return self._readings[index]


class InMemoryCorrector(Corrector):
    """テスト用インメモリ是正処理。呼び出し回数を記録する。"""

    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.normal_calls = 0
        self.forced_calls = 0

    @property
    def total_calls(self) -> int:
        return self.normal_calls + self.forced_calls

    def correct(self) -> None:
        self.normal_calls += 1
        if self._error is not None:
            raise self._error

    def force_correct(self) -> None:
        self.forced_calls += 1
        if self._error is not None:
            raise self._error
