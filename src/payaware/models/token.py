"""Authentication token model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)


class AuthToken(BaseModel):
    """Bearer token issued at login, registration or PIN login.

    Parameters
    ----------
    value : str
        The raw JWT string sent as ``Authorization: Bearer <value>``.
    user_id : str or None
        ``user_id`` claim, when the payload carries one.
    expires_at : datetime or None
        Expiry decoded from the ``exp`` claim.  ``None`` when the token
        cannot be decoded locally; such tokens are never considered
        locally expired and the backend gets the final word.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    user_id: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_jwt(cls, value: str) -> AuthToken:
        """Build a token by reading the unverified JWT claims.

        The signature is not checked: the client has no secret, it only
        needs the expiry to avoid a pointless round trip.
        """
        claims: dict[str, Any] = {}
        try:
            claims = jwt.get_unverified_claims(value)
        except JWTError:
            _logger.debug("Auth token is not a decodable JWT; skipping local expiry")

        expires_at: datetime | None = None
        exp = claims.get("exp")
        if isinstance(exp, (int, float)):
            try:
                expires_at = datetime.fromtimestamp(exp, tz=UTC)
            except (OverflowError, ValueError, OSError):
                _logger.debug("Auth token exp=%r is out of range; skipping local expiry", exp)

        user_id = claims.get("user_id")
        if isinstance(user_id, float) and user_id.is_integer():
            user_id = int(user_id)

        return cls(
            value=value,
            user_id=str(user_id) if user_id is not None else None,
            expires_at=expires_at,
        )

    def is_expired(self, now: datetime) -> bool:
        """Whether the embedded expiry lies before *now*."""
        if self.expires_at is None:
            return False
        return self.expires_at < now
