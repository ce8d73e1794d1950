"""profiles ライブラリの例外型定義"""

from __future__ import annotations


class ProfilesError(Exception):
    """profiles ライブラリのエラー基底クラス。"""

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


class ProfilesErrorCodes:
    """ProfilesError のエラーコード定数。"""

    PROBE_FAILED: str = "PROBE_FAILED"
    CORRECTION_FAILED: str = "CORRECTION_FAILED"
