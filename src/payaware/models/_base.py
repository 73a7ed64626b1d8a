"""Base model for PayAware API responses.

Every response model inherits from :class:`PayAwareBaseModel` which
provides:

* ``populate_by_name`` so fields accept both the backend key and the
  Python name.
* A ``model_validator(mode="before")`` that drops ``None`` values and
  the zero timestamp Go emits for unset ``time.Time`` fields, so the
  field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Go's zero time.Time serialises to this instant.
_GO_ZERO_TIME_PREFIX = "0001-01-01T00:00:00"


def parse_api_datetime(value: Any) -> datetime | None:
    """Coerce an RFC 3339 string (or datetime) into an aware UTC datetime.

    Naive values are assumed to be UTC.  ``None`` and the Go zero time
    become ``None``.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip() or value.startswith(_GO_ZERO_TIME_PREFIX):
            return None
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    raise ValueError(f"cannot parse datetime from {value!r}")


ApiDateTime = Annotated[datetime | None, BeforeValidator(parse_api_datetime)]
"""Annotated type that coerces backend timestamps to aware UTC datetimes."""


class PayAwareBaseModel(BaseModel):
    """Base for PayAware API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_api_values(cls, values: Any) -> Any:
        """Drop ``None`` / Go zero-time values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)

        cleaned: dict[str, Any] = {}
        for key, value in original.items():
            if value is None:
                continue
            if isinstance(value, str) and value.startswith(_GO_ZERO_TIME_PREFIX):
                continue
            cleaned[key] = value

        # Keep an explicitly passed raw= untouched.
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
