"""Helpers for safe debug logging.

payaware handles bearer tokens, passwords and PIN codes on every
authenticated call.  Everything that goes into a DEBUG log passes
through :func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "new_password",
        "token",
        "authtoken",
        "authorization",
        "pin",
        "pin_code",
        "pincode",
        "device_token",
        "devicetoken",
        "cookie",
    }
)

_MASK = "<redacted>"


def redact_token(token: str | None) -> str:
    """Short, non-reversible representation of a bearer token for logs."""
    if not token:
        return "<none>"
    return f"<token:{len(token)}c…{token[-4:]}>" if len(token) > 8 else "<token>"


def redact_for_log(value: Any) -> Any:
    """Copy of a JSON body with every secret-bearing key masked.

    Keys match case-insensitively at any depth; lists are walked, other
    values are returned as they are.
    """
    if isinstance(value, Mapping):
        return {
            str(key): _MASK if str(key).lower() in _SENSITIVE_VALUE_KEYS else redact_for_log(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item) for item in value]
    return value
