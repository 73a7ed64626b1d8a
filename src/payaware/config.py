"""Client configuration for payaware."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from payaware._constants import (
    BASE_URL,
    COALESCE_WINDOW,
    RECHECK_INTERVAL,
    REQUEST_TIMEOUT,
)
from payaware.exceptions import ConfigError


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class PayAwareConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend base URL (no trailing slash).
    request_timeout : float
        Total timeout in seconds for a single backend request.  Requests
        that run longer fail with :class:`~payaware.exceptions.RequestTimeoutError`.
    recheck_interval : float
        Seconds between periodic session re-checks while the app runs.
        Defaults to 15 minutes.  Set to ``0`` to disable the timer.
    coalesce_window : float
        Timer and foreground re-checks arriving within this many seconds
        of the last completed check are skipped.
    credentials_path : str or None
        File used by :class:`~payaware.storage.EncryptedFileCredentialStore`.
    credentials_key : str or None
        Fernet key (urlsafe base64, 32 bytes) for the credential file.
    """

    base_url: str = BASE_URL
    request_timeout: float = REQUEST_TIMEOUT
    recheck_interval: float = RECHECK_INTERVAL
    coalesce_window: float = COALESCE_WINDOW
    credentials_path: str | None = None
    credentials_key: str | None = None

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if self.recheck_interval < 0:
            raise ConfigError("recheck_interval must not be negative")
        if self.coalesce_window < 0:
            raise ConfigError("coalesce_window must not be negative")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> PayAwareConfig:
        """Create configuration from ``PAYAWARE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "PAYAWARE_BASE_URL": "base_url",
            "PAYAWARE_CREDENTIALS_PATH": "credentials_path",
            "PAYAWARE_CREDENTIALS_KEY": "credentials_key",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric settings
        _ENV_FLOAT_MAP = {
            "PAYAWARE_REQUEST_TIMEOUT": "request_timeout",
            "PAYAWARE_RECHECK_INTERVAL": "recheck_interval",
            "PAYAWARE_COALESCE_WINDOW": "coalesce_window",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
