"""command データモデル"""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import CommandError, CommandErrorCodes


@dataclass(frozen=True)
class CommandResult:
    """外部コマンドの実行結果。"""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        """終了コードが 0 以外なら CommandError を送出する。"""
        if not self.ok:
            detail = self.stderr.strip() or self.stdout.strip()
            message = f"{self.args[0]} exited with {self.returncode}"
            if detail:
                message += f": {detail}"
            raise CommandError(code=CommandErrorCodes.COMMAND_FAILED, message=message)
        return self
