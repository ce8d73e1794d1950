"""tailscale データモデル"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


@dataclass
class TailscaleApiConfig:
    """Tailscale API 接続設定。"""

    client_id: str
    client_secret: str
    base_url: str = "https://api.tailscale.com"
    tailnet: str = "-"
    timeout_seconds: float = 10.0

    @property
    def token_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v2/oauth/token"

    @property
    def keys_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v2/tailnet/{self.tailnet}/keys"


@dataclass
class OAuthToken:
    """OAuth アクセストークン。"""

    access_token: str
    token_type: str
    expires_at: float  # Unix timestamp

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> OAuthToken:
        """OAuth2 レスポンス辞書から OAuthToken を生成する。"""
        expires_in = int(response.get("expires_in", 3600))
        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type", "Bearer"),
            expires_at=time.time() + expires_in,
        )


@dataclass
class AuthKeyRequest:
    """auth key 発行リクエスト。"""

    tags: list[str]
    reusable: bool = False
    ephemeral: bool = True
    preauthorized: bool = True
    description: str = "macfleet enrollment"

    def to_dict(self) -> dict[str, Any]:
        return {
            "capabilities": {
                "devices": {
                    "create": {
                        "reusable": self.reusable,
                        "ephemeral": self.ephemeral,
                        "preauthorized": self.preauthorized,
                        "tags": list(self.tags),
                    }
                }
            },
            "description": self.description,
        }


@dataclass
class AuthKey:
    """発行された auth key。"""

    key: str
    id: str = ""
    expires: str = ""

    @classmethod
    def from_response(cls, response: Any) -> AuthKey:
        """キー発行レスポンスから AuthKey を生成する。

        Raises:
            ValueError: オブジェクトでない、key が含まれていない、
                または tskey- で始まらない場合
        """
        if not isinstance(response, dict):
            raise ValueError("Auth key response must be a JSON object")
        key = response.get("key", "")
        if not isinstance(key, str) or not key.startswith("tskey-"):
            raise ValueError("Response did not contain a tskey- auth key")
        return cls(key=key, id=response.get("id", ""), expires=response.get("expires", ""))


class KeySource(StrEnum):
    """auth key の入手元。"""

    PROVIDED = "provided"
    OAUTH = "oauth"


@dataclass
class EnrollmentSettings:
    """登録処理の設定。"""

    tags: list[str] = field(default_factory=lambda: ["tag:default"])
    hostname: str = ""
    app_path: str = "/Applications/Tailscale.app"
    binary_path: str = "/Applications/Tailscale.app/Contents/MacOS/Tailscale"
    lsregister_path: str = (
        "/System/Library/Frameworks/CoreServices.framework/Frameworks/"
        "LaunchServices.framework/Support/lsregister"
    )
    browser: str = "Google Chrome"
    suppress_browser: bool = True
    suppress_interval: float = 2.0
    launch_wait: float = 2.0


@dataclass
class EnrollmentResult:
    """登録処理の結果。"""

    hostname: str
    tags: list[str]
    key_source: KeySource
    status_output: str = ""
