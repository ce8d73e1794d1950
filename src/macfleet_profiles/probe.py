"""profiles コマンドによる StatusProbe 実装"""

from __future__ import annotations

import structlog

from macfleet_command import CommandError, CommandRunner
from macfleet_retry import StatusProbe, WorkCounts

from .exceptions import ProfilesError, ProfilesErrorCodes
from .parser import is_dep_enrolled, parse_work_counts

logger = structlog.stdlib.get_logger(__name__)

PROFILES = "profiles"


class ProfilesStatusProbe(StatusProbe):
    """`profiles show -type configuration` を読み取るプローブ。"""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def probe(self) -> WorkCounts:
        logger.debug("checking configuration profiles")
        try:
            result = self._runner.run([PROFILES, "show", "-type", "configuration"])
        except CommandError as e:
            raise ProfilesError(
                code=ProfilesErrorCodes.PROBE_FAILED,
                message=f"Failed to run profiles: {e}",
                cause=e,
            ) from e
        if not result.ok:
            raise ProfilesError(
                code=ProfilesErrorCodes.PROBE_FAILED,
                message=(
                    f"profiles show exited with {result.returncode}: "
                    f"{result.stderr.strip()}"
                ),
            )
        counts = parse_work_counts(result.stdout)
        logger.debug("profile status", pending=counts.pending, failed=counts.failed)
        return counts


def check_enrollment(runner: CommandRunner) -> bool:
    """DEP/MDM 登録状態を確認する。情報表示のみで制御には使わない。"""
    logger.debug("checking MDM enrollment status")
    try:
        result = runner.run([PROFILES, "status", "-type", "enrollment"])
    except CommandError as e:
        logger.debug("enrollment check failed", error=str(e))
        return False
    return result.ok and is_dep_enrolled(result.stdout)


def profiles_status(runner: CommandRunner) -> str:
    """`profiles status` の出力を返す。失敗時は空文字列。"""
    try:
        result = runner.run([PROFILES, "status"])
    except CommandError as e:
        logger.debug("profiles status failed", error=str(e))
        return ""
    return result.stdout if result.ok else ""
