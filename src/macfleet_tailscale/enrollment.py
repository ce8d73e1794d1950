"""Tailscale 登録処理"""

from __future__ import annotations

import contextlib
import time
from collections.abc import Callable

import structlog

from macfleet_command import CommandError, CommandRunner

from .client import TailscaleApi
from .exceptions import TailscaleError, TailscaleErrorCodes
from .models import AuthKeyRequest, EnrollmentResult, EnrollmentSettings, KeySource
from .suppressor import BrowserSuppressor

logger = structlog.stdlib.get_logger(__name__)


class Enroller:
    """auth key を用意して `tailscale up` を実行する。

    auth_key が指定されていればそれを使い、なければ api で
    エフェメラルキーを発行する。どちらもない場合は呼び出し前に
    設定エラーとして弾くこと。
    """

    def __init__(
        self,
        settings: EnrollmentSettings,
        runner: CommandRunner,
        *,
        auth_key: str = "",
        api: TailscaleApi | None = None,
        key_request: AuthKeyRequest | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not auth_key and api is None:
            raise ValueError("Either auth_key or api must be provided")
        self._settings = settings
        self._runner = runner
        self._auth_key = auth_key
        self._api = api
        self._key_request = key_request or AuthKeyRequest(tags=list(settings.tags))
        self._sleep = sleep

    def resolve_hostname(self) -> str:
        """設定のホスト名、なければ scutil の ComputerName を返す。"""
        if self._settings.hostname:
            return self._settings.hostname
        try:
            result = self._runner.run(["scutil", "--get", "ComputerName"])
        except CommandError as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.HOSTNAME_UNAVAILABLE,
                message=f"Could not run scutil: {e}",
                cause=e,
            ) from e
        hostname = result.stdout.strip() if result.ok else ""
        if not hostname:
            raise TailscaleError(
                code=TailscaleErrorCodes.HOSTNAME_UNAVAILABLE,
                message="Could not determine hostname from scutil",
            )
        return hostname

    def clear_launchservices_cache(self) -> None:
        """再起動せずに済むよう LaunchServices のキャッシュを消す。"""
        logger.info("clearing LaunchServices cache")
        try:
            result = self._runner.run(
                [
                    self._settings.lsregister_path,
                    "-kill", "-r",
                    "-domain", "local",
                    "-domain", "system",
                    "-domain", "user",
                ]
            )
        except CommandError as e:
            logger.warning("could not clear LaunchServices cache", error=str(e))
            return
        if result.ok:
            logger.info("LaunchServices cache cleared")
        else:
            logger.warning("lsregister failed", returncode=result.returncode)

    def resolve_auth_key(self) -> tuple[str, KeySource]:
        if self._auth_key:
            logger.info("using provided auth key")
            return self._auth_key, KeySource.PROVIDED
        assert self._api is not None
        logger.info("requesting OAuth token and ephemeral auth key")
        key = self._api.issue_auth_key(self._key_request)
        logger.info("auth key issued", key_id=key.id)
        return key.key, KeySource.OAUTH

    def launch_app(self) -> None:
        logger.info("launching Tailscale app", app=self._settings.app_path)
        try:
            result = self._runner.run(["open", "-g", "-a", self._settings.app_path])
        except CommandError as e:
            logger.warning("could not launch Tailscale app", error=str(e))
        else:
            if not result.ok:
                logger.warning("open returned an error", returncode=result.returncode)
        self._sleep(self._settings.launch_wait)

    def tailscale_up(self, auth_key: str, hostname: str) -> None:
        tags = ",".join(self._settings.tags)
        logger.info("running tailscale up", hostname=hostname, tags=tags)
        try:
            result = self._runner.run(
                [
                    self._settings.binary_path,
                    "up",
                    "--reset",
                    f"--auth-key={auth_key}",
                    f"--advertise-tags={tags}",
                    f"--hostname={hostname}",
                    "--accept-routes",
                ]
            )
        except CommandError as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.UP_FAILED,
                message=f"tailscale up could not be run: {e}",
                cause=e,
            ) from e
        if not result.ok:
            raise TailscaleError(
                code=TailscaleErrorCodes.UP_FAILED,
                message=f"tailscale up exited with {result.returncode}: {result.stderr.strip()}",
            )

    def status(self) -> str:
        try:
            result = self._runner.run([self._settings.binary_path, "status"])
        except CommandError as e:
            logger.warning("tailscale status failed", error=str(e))
            return ""
        return result.stdout

    def _suppression(self) -> contextlib.AbstractContextManager[object]:
        if not self._settings.suppress_browser:
            return contextlib.nullcontext()
        return BrowserSuppressor(
            self._settings.browser,
            self._runner,
            interval=self._settings.suppress_interval,
        )

    def run(self) -> EnrollmentResult:
        """登録処理を実行する。ブラウザ抑止はどの経路でも終了前に停止する。"""
        hostname = self.resolve_hostname()
        with self._suppression():
            self.clear_launchservices_cache()
            auth_key, source = self.resolve_auth_key()
            self.launch_app()
            self.tailscale_up(auth_key, hostname)
        logger.info("tailscale setup complete", hostname=hostname)

        status_output = self.status()
        logger.info("tailscale status", status=status_output)
        return EnrollmentResult(
            hostname=hostname,
            tags=list(self._settings.tags),
            key_source=source,
            status_output=status_output,
        )
