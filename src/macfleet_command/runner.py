"""外部コマンド実行"""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence

from .exceptions import CommandError, CommandErrorCodes
from .models import CommandResult


class CommandRunner(ABC):
    """外部コマンド実行の抽象基底クラス。"""

    @abstractmethod
    def run(self, args: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        """コマンドを実行し結果を返す。終了コードが 0 以外でも例外にはしない。"""
        ...

    @abstractmethod
    def which(self, name: str) -> str | None:
        """コマンドのパスを返す。見つからなければ None。"""
        ...

    def require(self, name: str) -> str:
        """コマンドのパスを返す。見つからなければ CommandError を送出する。"""
        path = self.which(name)
        if path is None:
            raise CommandError(
                code=CommandErrorCodes.TOOL_NOT_FOUND,
                message=f"Required command not found: {name}",
            )
        return path


class SubprocessCommandRunner(CommandRunner):
    """subprocess を使った CommandRunner 実装。"""

    def __init__(self, default_timeout: float | None = None) -> None:
        self._default_timeout = default_timeout

    def run(self, args: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        argv = tuple(args)
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout if timeout is not None else self._default_timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandError(
                code=CommandErrorCodes.TOOL_NOT_FOUND,
                message=f"Command not found: {argv[0]}",
                cause=e,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                code=CommandErrorCodes.TIMEOUT,
                message=f"Command timed out after {e.timeout}s: {argv[0]}",
                cause=e,
            ) from e
        return CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def which(self, name: str) -> str | None:
        return shutil.which(name)
