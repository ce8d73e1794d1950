"""環境変数による設定の上書き"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from .loader import validate
from .models import AppConfig

ENV_OVERRIDES: dict[str, str] = {
    "TAILSCALE_AUTH_KEY": "tailscale.auth_key",
    "TAILSCALE_CLIENT_ID": "tailscale.client_id",
    "TAILSCALE_CLIENT_SECRET": "tailscale.client_secret",
    "TAILSCALE_TAGS": "tailscale.tags",
    "TAILSCALE_HOSTNAME": "tailscale.hostname",
    "MACFLEET_LOG_LEVEL": "log.level",
    "MACFLEET_LOG_FORMAT": "log.format",
}


def set_path(data: dict[str, Any], key_path: str, value: Any) -> None:
    """ドット区切りのパスに値を設定する。途中のノードは必要に応じて作る。"""
    parts = key_path.split(".")
    node = data
    for part in parts[:-1]:
        if part not in node or node[part] is None:
            node[part] = {}
        node = node[part]
    node[parts[-1]] = value


def apply_overrides(config: AppConfig, overrides: Mapping[str, Any]) -> AppConfig:
    """ドット区切りパスの値を設定にマージして新しい AppConfig を返す。

    例: {"policy_retry.max_attempts": 3, "tailscale.hostname": "mac-01"}
    """
    data = config.model_dump()
    for key_path, value in overrides.items():
        set_path(data, key_path, value)
    return validate(data)


def apply_env_overrides(
    config: AppConfig,
    environ: Mapping[str, str],
    sections: Collection[str] | None = None,
) -> AppConfig:
    """ENV_OVERRIDES に定義された環境変数を設定にマージする。空文字列は無視する。

    sections を指定した場合、そのトップレベルセクション（"log" など）に
    対応する環境変数だけを読む。
    """
    overrides = {
        path: environ[name]
        for name, path in ENV_OVERRIDES.items()
        if environ.get(name) and (sections is None or path.split(".", 1)[0] in sections)
    }
    if not overrides:
        return config
    return apply_overrides(config, overrides)
