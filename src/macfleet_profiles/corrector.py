"""profiles コマンドによる Corrector 実装"""

from __future__ import annotations

from pathlib import Path

import structlog

from macfleet_command import CommandError, CommandRunner
from macfleet_retry import Corrector

from .exceptions import ProfilesError, ProfilesErrorCodes
from .probe import PROFILES

logger = structlog.stdlib.get_logger(__name__)

DEFAULT_MDM_OVERRIDES = Path("/Library/Application Support/com.apple.TCC/MDMOverrides.plist")


class ProfilesCorrector(Corrector):
    """MDM ポリシーの再評価を促す是正処理。"""

    def __init__(
        self,
        runner: CommandRunner,
        mdm_overrides_path: Path = DEFAULT_MDM_OVERRIDES,
    ) -> None:
        self._runner = runner
        self._mdm_overrides_path = mdm_overrides_path

    def _try(self, args: list[str]) -> bool:
        try:
            result = self._runner.run(args)
        except CommandError as e:
            logger.debug("command failed", args=args, error=str(e))
            return False
        if not result.ok:
            logger.debug("command failed", args=args, returncode=result.returncode)
        return result.ok

    def _touch_overrides(self) -> None:
        if not self._mdm_overrides_path.is_file():
            return
        logger.debug("touching MDM configuration file", path=str(self._mdm_overrides_path))
        try:
            self._mdm_overrides_path.touch()
        except OSError as e:
            logger.debug("could not touch MDM configuration file", error=str(e))

    def correct(self) -> None:
        """登録の更新を試み、だめなら設定ファイルの更新とプロファイル再読込で代替する。"""
        if self._try([PROFILES, "renew", "-type", "enrollment"]):
            logger.debug("triggered enrollment renewal")
            return
        self._touch_overrides()
        if not self._try([PROFILES, "-P"]):
            raise ProfilesError(
                code=ProfilesErrorCodes.CORRECTION_FAILED,
                message="Neither enrollment renewal nor profile refresh succeeded",
            )

    def force_correct(self) -> None:
        """全プロファイル種別を更新し、cfprefsd に HUP を送る。"""
        outcomes: list[bool] = []
        for profile_type in ("enrollment", "configuration"):
            logger.debug("refreshing profiles", profile_type=profile_type)
            outcomes.append(self._try([PROFILES, "renew", "-type", profile_type]))
        logger.debug("triggering system policy refresh")
        outcomes.append(self._try(["killall", "-HUP", "cfprefsd"]))
        if not any(outcomes):
            raise ProfilesError(
                code=ProfilesErrorCodes.CORRECTION_FAILED,
                message="Every forced refresh step failed",
            )
