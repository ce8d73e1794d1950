"""command ライブラリの例外型定義"""

from __future__ import annotations


class CommandError(Exception):
    """command ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class CommandErrorCodes:
    """CommandError のエラーコード定数。"""

    TOOL_NOT_FOUND: str = "TOOL_NOT_FOUND"
    COMMAND_FAILED: str = "COMMAND_FAILED"
    TIMEOUT: str = "TIMEOUT"
