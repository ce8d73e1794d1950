"""macfleet-policy-retry コマンド

失敗・保留中の MDM 構成プロファイルを macOS 標準の profiles コマンドで
再評価させ、指数バックオフ付きで収束するまで繰り返す。
Jamf / Intune / Kandji など MDM 製品には依存しない。
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
    apply_env_overrides,
    apply_overrides,
    load,
)
from macfleet_retry import ConvergenceError, RetryConfig, with_convergence
from macfleet_telemetry import new_logger

from .corrector import ProfilesCorrector
from .exceptions import ProfilesError
from .probe import PROFILES, ProfilesStatusProbe, check_enrollment, profiles_status

PROG = "policy-retry"
ENV_SECTIONS = ("log", "policy_retry")

EPILOG = """\
examples:
  macfleet-policy-retry                # run with default settings
  macfleet-policy-retry -r 3 -d 5      # 3 retries with 5 second initial delay
  macfleet-policy-retry -f -v          # force refresh with verbose logging
"""


class _ArgumentParser(argparse.ArgumentParser):
    """不正な引数で終了コード 1 を返す ArgumentParser。"""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="macfleet-policy-retry",
        description="Retry failed or pending MDM configuration profiles with exponential backoff.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-r", "--retries", type=int, metavar="NUM",
        help="maximum number of retry attempts (default: 5)",
    )
    parser.add_argument(
        "-d", "--delay", type=float, metavar="SECONDS",
        help="initial delay between retries (default: 10)",
    )
    parser.add_argument(
        "-i", "--interval", type=float, metavar="SECONDS",
        help="interval to wait before re-checking policy status (default: 30)",
    )
    parser.add_argument(
        "--max-delay", type=float, metavar="SECONDS",
        help="upper bound for the backoff delay (default: 300)",
    )
    parser.add_argument(
        "-f", "--force", action="store_true",
        help="force refresh even if policies appear current",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")
    parser.add_argument("-c", "--config", type=Path, metavar="PATH", help="YAML config file")
    return parser


def resolve_config(
    args: argparse.Namespace, environ: Mapping[str, str]
) -> tuple[AppConfig, RetryConfig]:
    """設定ファイル・環境変数・コマンドライン引数の順に重ねた設定を返す。"""
    config = apply_env_overrides(load(args.config), environ, ENV_SECTIONS)

    overrides: dict[str, Any] = {}
    if args.retries is not None:
        overrides["policy_retry.max_attempts"] = args.retries
    if args.delay is not None:
        overrides["policy_retry.initial_delay"] = args.delay
    if args.interval is not None:
        overrides["policy_retry.check_interval"] = args.interval
    if args.max_delay is not None:
        overrides["policy_retry.max_delay"] = args.max_delay
    if args.force:
        overrides["policy_retry.force"] = True
    if args.verbose:
        overrides["log.level"] = "DEBUG"
    if overrides:
        config = apply_overrides(config, overrides)

    section = config.policy_retry
    retry_config = RetryConfig(
        max_attempts=section.max_attempts,
        initial_delay=section.initial_delay,
        max_delay=section.max_delay,
        check_interval=section.check_interval,
        force=section.force,
    )
    return config, retry_config


def main(
    argv: Sequence[str] | None = None,
    *,
    runner: CommandRunner | None = None,
    sleep: Callable[[float], None] = time.sleep,
    environ: Mapping[str, str] | None = None,
) -> int:
    """コマンドを実行し終了コードを返す。"""
    args = build_parser().parse_args(argv)
    log = new_logger(level="DEBUG" if args.verbose else "INFO", name=PROG)

    try:
        config, retry_config = resolve_config(args, os.environ if environ is None else environ)
    except (ConfigError, ValueError) as e:
        log.error("invalid configuration", error=str(e))
        return 1

    log = new_logger(level=config.log.level, format=config.log.format, name=PROG)
    verbose = config.log.level.upper() == "DEBUG"
    runner = runner or SubprocessCommandRunner()

    log.info("starting policy retry process")
    log.debug(
        "configuration",
        retries=retry_config.max_attempts,
        initial_delay=retry_config.initial_delay,
        max_delay=retry_config.max_delay,
        check_interval=retry_config.check_interval,
        force=retry_config.force,
    )

    try:
        runner.require(PROFILES)
    except CommandError as e:
        log.error("profiles command not found, this tool requires macOS 10.7+", code=e.code)
        return 1

    if not check_enrollment(runner):
        log.debug("device not enrolled via DEP/MDM, continuing with profile refresh")

    probe = ProfilesStatusProbe(runner)
    corrector = ProfilesCorrector(runner, Path(config.policy_retry.mdm_overrides_path))
    try:
        result = with_convergence(retry_config, probe, corrector, sleep=sleep)
    except ConvergenceError as e:
        log.error("policy retry process failed", error=str(e), code=e.code)
        return 1
    except ProfilesError as e:
        log.error("could not read profile status", error=str(e), code=e.code)
        return 1

    log.info(
        "policy retry completed successfully",
        attempts=result.attempts,
        corrections=result.corrections,
    )
    if verbose:
        log.info("final profile status", status=profiles_status(runner))
    return 0


def run() -> None:
    """console_scripts エントリポイント。"""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
