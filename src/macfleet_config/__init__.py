"""macfleet config library."""

from .environ import ENV_OVERRIDES, apply_env_overrides, apply_overrides
from .exceptions import ConfigError, ConfigErrorCodes
from .loader import load, validate
from .models import (
    AppConfig,
    AuthKeySection,
    LogSection,
    PolicyRetrySection,
    TailscaleSection,
)

__all__ = [
    "AppConfig",
    "AuthKeySection",
    "LogSection",
    "PolicyRetrySection",
    "TailscaleSection",
    "load",
    "validate",
    "apply_overrides",
    "apply_env_overrides",
    "ENV_OVERRIDES",
    "ConfigError",
    "ConfigErrorCodes",
]
