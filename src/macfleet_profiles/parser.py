"""profiles コマンド出力のパース"""

from __future__ import annotations

import re

from macfleet_retry import WorkCounts

_PENDING = re.compile(r"ProfileInstallationState:\s*Pending")
_FAILED = re.compile(r"ProfileInstallationState:\s*Failed")
_DEP_ENROLLED = re.compile(r"Enrolled via DEP:\s*Yes")


def count_matching_lines(text: str, pattern: re.Pattern[str]) -> int:
    return sum(1 for line in text.splitlines() if pattern.search(line))


def parse_work_counts(text: str) -> WorkCounts:
    """`profiles show -type configuration` の出力から pending / failed 件数を数える。"""
    return WorkCounts(
        pending=count_matching_lines(text, _PENDING),
        failed=count_matching_lines(text, _FAILED),
    )


def is_dep_enrolled(text: str) -> bool:
    """`profiles status -type enrollment` の出力が DEP 登録済みを示すか。"""
    return _DEP_ENROLLED.search(text) is not None
