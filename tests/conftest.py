"""テスト共通フィクスチャ。"""

from __future__ import annotations

import pytest

from macfleet_command import InMemoryCommandRunner


class RecordingSleep:
    """time.sleep の代わりに待機秒数を記録する。"""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def runner() -> InMemoryCommandRunner:
    return InMemoryCommandRunner()
