"""macfleet-tailscale-join コマンド

auth key を直接指定するか、OAuth クライアント資格情報でエフェメラル
auth key を発行して Mac を tailnet に参加させる。
ログイン画面が開かないようブラウザを終了させ続け、再起動を避けるため
LaunchServices のキャッシュを消してから `tailscale up` を実行する。
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, NoReturn

from macfleet_command import CommandError, CommandRunner, SubprocessCommandRunner
from macfleet_config import (
    AppConfig,
    ConfigError,
    ConfigErrorCodes,
    apply_env_overrides,
    apply_overrides,
    load,
)
from macfleet_telemetry import new_logger

from .client import TailscaleApi
from .enrollment import Enroller
from .exceptions import TailscaleError
from .http_client import TailscaleApiClient
from .models import AuthKeyRequest, EnrollmentSettings, TailscaleApiConfig

PROG = "tailscale-setup"
ENV_SECTIONS = ("log", "tailscale")

EPILOG = """\
environment:
  TAILSCALE_AUTH_KEY        auth key to use directly (tskey-...)
  TAILSCALE_CLIENT_ID       OAuth client id (used when no auth key is given)
  TAILSCALE_CLIENT_SECRET   OAuth client secret
  TAILSCALE_TAGS            comma separated tags (default: tag:default)
  TAILSCALE_HOSTNAME        hostname to register (default: ComputerName)
"""


class _ArgumentParser(argparse.ArgumentParser):
    """不正な引数で終了コード 1 を返す ArgumentParser。"""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="macfleet-tailscale-join",
        description="Join this Mac to a tailnet without user interaction.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--tags", help="comma separated tags to advertise")
    parser.add_argument("--hostname", help="hostname to register")
    parser.add_argument("--browser", help="browser to keep closed during enrollment")
    parser.add_argument(
        "--no-browser-suppression",
        action="store_true",
        help="do not kill the browser while enrolling",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")
    parser.add_argument("-c", "--config", type=Path, metavar="PATH", help="YAML config file")
    return parser


def resolve_config(args: argparse.Namespace, environ: Mapping[str, str]) -> AppConfig:
    """設定ファイル・環境変数・コマンドライン引数の順に重ねた設定を返す。"""
    config = apply_env_overrides(load(args.config), environ, ENV_SECTIONS)

    overrides: dict[str, Any] = {}
    if args.tags:
        overrides["tailscale.tags"] = args.tags
    if args.hostname:
        overrides["tailscale.hostname"] = args.hostname
    if args.browser:
        overrides["tailscale.browser"] = args.browser
    if args.no_browser_suppression:
        overrides["tailscale.suppress_browser"] = False
    if args.verbose:
        overrides["log.level"] = "DEBUG"
    if overrides:
        config = apply_overrides(config, overrides)

    if not config.tailscale.has_credentials():
        raise ConfigError(
            code=ConfigErrorCodes.MISSING_CREDENTIALS,
            message=(
                "Either TAILSCALE_AUTH_KEY or both TAILSCALE_CLIENT_ID and "
                "TAILSCALE_CLIENT_SECRET must be set"
            ),
        )
    return config


def build_enroller(
    config: AppConfig,
    runner: CommandRunner,
    *,
    api: TailscaleApi | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Enroller:
    section = config.tailscale
    settings = EnrollmentSettings(
        tags=list(section.tags),
        hostname=section.hostname,
        app_path=section.app_path,
        binary_path=section.binary_path,
        lsregister_path=section.lsregister_path,
        browser=section.browser,
        suppress_browser=section.suppress_browser,
        suppress_interval=section.suppress_interval,
        launch_wait=section.launch_wait,
    )
    if not section.auth_key and api is None:
        api = TailscaleApiClient(
            TailscaleApiConfig(
                client_id=section.client_id,
                client_secret=section.client_secret,
                base_url=section.api_base_url,
                tailnet=section.tailnet,
                timeout_seconds=section.timeout_seconds,
            )
        )
    options = section.auth_key_options
    key_request = AuthKeyRequest(
        tags=list(section.tags),
        reusable=options.reusable,
        ephemeral=options.ephemeral,
        preauthorized=options.preauthorized,
        description=options.description,
    )
    return Enroller(
        settings,
        runner,
        auth_key=section.auth_key,
        api=api,
        key_request=key_request,
        sleep=sleep,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    runner: CommandRunner | None = None,
    api: TailscaleApi | None = None,
    sleep: Callable[[float], None] = time.sleep,
    environ: Mapping[str, str] | None = None,
) -> int:
    """コマンドを実行し終了コードを返す。"""
    args = build_parser().parse_args(argv)
    log = new_logger(level="DEBUG" if args.verbose else "INFO", name=PROG)

    try:
        config = resolve_config(args, os.environ if environ is None else environ)
    except ConfigError as e:
        log.error("invalid configuration", error=str(e), code=e.code)
        return 1

    log = new_logger(level=config.log.level, format=config.log.format, name=PROG)
    enroller = build_enroller(config, runner or SubprocessCommandRunner(), api=api, sleep=sleep)
    try:
        result = enroller.run()
    except (TailscaleError, CommandError) as e:
        log.error("tailscale setup failed", error=str(e), code=e.code)
        return 1

    log.info(
        "enrollment finished",
        hostname=result.hostname,
        tags=",".join(result.tags),
        key_source=str(result.key_source),
    )
    return 0


def run() -> None:
    """console_scripts エントリポイント。"""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
