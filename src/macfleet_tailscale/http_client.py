"""Tailscale API の httpx 実装"""

from __future__ import annotations

from typing import Any

import httpx

from .client import TailscaleApi
from .exceptions import TailscaleError, TailscaleErrorCodes
from .models import AuthKey, AuthKeyRequest, OAuthToken, TailscaleApiConfig


class TailscaleApiClient(TailscaleApi):
    """httpx を使った OAuth Client Credentials と auth key 発行の実装。"""

    def __init__(self, config: TailscaleApiConfig) -> None:
        self._config = config

    def _token_form(self) -> dict[str, str]:
        return {
            "grant_type": "client_credentials",
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }

    @staticmethod
    def _auth_headers(token: OAuthToken) -> dict[str, str]:
        return {"Authorization": f"Bearer {token.access_token}"}

    @staticmethod
    def _parse_token(body: Any) -> OAuthToken:
        try:
            return OAuthToken.from_response(body)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.TOKEN_REQUEST_FAILED,
                message="Token response did not contain an access token",
                cause=e,
            ) from e

    @staticmethod
    def _parse_key(body: Any) -> AuthKey:
        try:
            return AuthKey.from_response(body)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.KEY_REQUEST_FAILED,
                message=f"Invalid auth key response: {e}",
                cause=e,
            ) from e

    def _request_token(self) -> Any:
        try:
            with httpx.Client(timeout=self._config.timeout_seconds) as client:
                resp = client.post(self._config.token_url, data=self._token_form())
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.TOKEN_REQUEST_FAILED,
                message=f"Token request failed: HTTP {e.response.status_code}",
                cause=e,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.TOKEN_REQUEST_FAILED,
                message=f"Token request failed: {e}",
                cause=e,
            ) from e

    def _request_key(self, token: OAuthToken, request: AuthKeyRequest) -> Any:
        try:
            with httpx.Client(timeout=self._config.timeout_seconds) as client:
                resp = client.post(
                    self._config.keys_url,
                    json=request.to_dict(),
                    headers=self._auth_headers(token),
                )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.KEY_REQUEST_FAILED,
                message=f"Auth key request failed: HTTP {e.response.status_code}",
                cause=e,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TailscaleError(
                code=TailscaleErrorCodes.KEY_REQUEST_FAILED,
                message=f"Auth key request failed: {e}",
                cause=e,
            ) from e

    def get_access_token(self) -> OAuthToken:
        """新しいアクセストークンを取得する。"""
        return self._parse_token(self._request_token())

    def create_auth_key(self, token: OAuthToken, request: AuthKeyRequest) -> AuthKey:
        """エフェメラル auth key を発行する。"""
        return self._parse_key(self._request_key(token, request))
