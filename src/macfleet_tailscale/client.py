"""TailscaleApi 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import AuthKey, AuthKeyRequest, OAuthToken


class TailscaleApi(ABC):
    """Tailscale API クライアント抽象基底クラス。"""

    @abstractmethod
    def get_access_token(self) -> OAuthToken:
        """OAuth アクセストークンを取得する。"""
        ...

    @abstractmethod
    def create_auth_key(self, token: OAuthToken, request: AuthKeyRequest) -> AuthKey:
        """auth key を発行する。"""
        ...

    def issue_auth_key(self, request: AuthKeyRequest) -> AuthKey:
        """トークンを取得して auth key を発行する。"""
        return self.create_auth_key(self.get_access_token(), request)
