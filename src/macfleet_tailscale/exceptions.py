"""tailscale ライブラリの例外型定義"""

from __future__ import annotations


class TailscaleError(Exception):
    """tailscale ライブラリのエラー基底クラス。"""

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


class TailscaleErrorCodes:
    """TailscaleError のエラーコード定数。"""

    TOKEN_REQUEST_FAILED: str = "TOKEN_REQUEST_FAILED"
    KEY_REQUEST_FAILED: str = "KEY_REQUEST_FAILED"
    UP_FAILED: str = "UP_FAILED"
    HOSTNAME_UNAVAILABLE: str = "HOSTNAME_UNAVAILABLE"
