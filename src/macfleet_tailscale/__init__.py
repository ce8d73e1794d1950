"""macfleet tailscale library."""

from .client import TailscaleApi
from .enrollment import Enroller
from .exceptions import TailscaleError, TailscaleErrorCodes
from .http_client import TailscaleApiClient
from .models import (
    AuthKey,
    AuthKeyRequest,
    EnrollmentResult,
    EnrollmentSettings,
    KeySource,
    OAuthToken,
    TailscaleApiConfig,
)
from .suppressor import BrowserSuppressor

__all__ = [
    "TailscaleApi",
    "TailscaleApiClient",
    "TailscaleApiConfig",
    "OAuthToken",
    "AuthKey",
    "AuthKeyRequest",
    "KeySource",
    "EnrollmentSettings",
    "EnrollmentResult",
    "Enroller",
    "BrowserSuppressor",
    "TailscaleError",
    "TailscaleErrorCodes",
]
