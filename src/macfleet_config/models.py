"""設定型定義（pydantic BaseModel）"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"


class PolicyRetrySection(BaseModel):
    """MDM プロファイル収束リトライ設定。"""

    max_attempts: int = Field(default=5, ge=1)
    initial_delay: float = Field(default=10.0, gt=0)
    max_delay: float = Field(default=300.0, gt=0)
    check_interval: float = Field(default=30.0, gt=0)
    force: bool = False
    mdm_overrides_path: str = "/Library/Application Support/com.apple.TCC/MDMOverrides.plist"

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> PolicyRetrySection:
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})"
            )
        return self


class AuthKeySection(BaseModel):
    """発行する auth key の属性。"""

    reusable: bool = False
    ephemeral: bool = True
    preauthorized: bool = True
    description: str = "macfleet enrollment"


class TailscaleSection(BaseModel):
    """Tailscale 登録設定。"""

    auth_key: str = ""
    client_id: str = ""
    client_secret: str = ""
    tags: list[str] = Field(default_factory=lambda: ["tag:default"])
    hostname: str = ""
    api_base_url: str = "https://api.tailscale.com"
    tailnet: str = "-"
    timeout_seconds: float = Field(default=10.0, gt=0)
    app_path: str = "/Applications/Tailscale.app"
    binary_path: str = "/Applications/Tailscale.app/Contents/MacOS/Tailscale"
    lsregister_path: str = (
        "/System/Library/Frameworks/CoreServices.framework/Frameworks/"
        "LaunchServices.framework/Support/lsregister"
    )
    browser: str = "Google Chrome"
    suppress_browser: bool = True
    suppress_interval: float = Field(default=2.0, gt=0)
    launch_wait: float = Field(default=2.0, ge=0)
    auth_key_options: AuthKeySection = Field(default_factory=AuthKeySection)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        return value

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one tag is required")
        for tag in value:
            if not tag.startswith("tag:"):
                raise ValueError(f"Invalid tag {tag!r}: tags must start with 'tag:'")
        return value

    def has_credentials(self) -> bool:
        """auth key か OAuth クライアント資格情報のどちらかが揃っているか。"""
        return bool(self.auth_key) or bool(self.client_id and self.client_secret)


class AppConfig(BaseModel):
    """macfleet 設定全体。"""

    log: LogSection = Field(default_factory=LogSection)
    policy_retry: PolicyRetrySection = Field(default_factory=PolicyRetrySection)
    tailscale: TailscaleSection = Field(default_factory=TailscaleSection)
