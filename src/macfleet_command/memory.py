"""InMemoryCommandRunner 実装"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from .exceptions import CommandError, CommandErrorCodes
from .models import CommandResult
from .runner import CommandRunner


class InMemoryCommandRunner(CommandRunner):
    """テスト用インメモリコマンドランナー。

    応答は引数の先頭一致で登録する。同じプレフィックスに複数の応答を
    登録すると順番に返し、最後の応答はその後も返し続ける。
    未登録のコマンドは終了コード 0・出力なしとして扱う。
    available を省略した場合、set_missing したもの以外の which() は全て成功する。
    """

    def __init__(self, available: Sequence[str] = ()) -> None:
        self._responses: dict[tuple[str, ...], list[CommandResult]] = {}
        self._missing: set[str] = set()
        self._available = set(available)
        self._lock = threading.Lock()
        self.calls: list[tuple[str, ...]] = []

    def set_response(
        self,
        prefix: Sequence[str],
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """プレフィックスに対する応答を追加する。"""
        key = tuple(prefix)
        result = CommandResult(args=key, returncode=returncode, stdout=stdout, stderr=stderr)
        with self._lock:
            self._responses.setdefault(key, []).append(result)

    def set_missing(self, name: str) -> None:
        """コマンドを未インストール扱いにする。"""
        with self._lock:
            self._missing.add(name)
            self._available.discard(name)

    def calls_with_prefix(self, prefix: Sequence[str]) -> list[tuple[str, ...]]:
        key = tuple(prefix)
        with self._lock:
            return [c for c in self.calls if c[: len(key)] == key]

    def run(self, args: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        argv = tuple(args)
        with self._lock:
            self.calls.append(argv)
            if argv and argv[0] in self._missing:
                raise CommandError(
                    code=CommandErrorCodes.TOOL_NOT_FOUND,
                    message=f"Command not found: {argv[0]}",
                )
            queue = self._match(argv)
            if queue is None:
                return CommandResult(args=argv, returncode=0)
            result = queue.pop(0) if len(queue) > 1 else queue[0]
        return CommandResult(
            args=argv,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def which(self, name: str) -> str | None:
        with self._lock:
            if name in self._missing:
                return None
            if name in self._available or not self._available:
                return f"/usr/bin/{name}"
            return None

    def _match(self, argv: tuple[str, ...]) -> list[CommandResult] | None:
        # 最長一致のプレフィックスを優先する
        best: tuple[str, ...] | None = None
        for key in self._responses:
            if argv[: len(key)] == key and (best is None or len(key) > len(best)):
                best = key
        return self._responses[best] if best is not None else None
