"""Shared request helper and error classification for endpoint modules.

Every endpoint module goes through :func:`send`, so raw transport
failures are mapped onto the library's error taxonomy in exactly one
place.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any

from payaware._transport import Transport
from payaware.exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    SessionExpiredError,
    TransportError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

_logger = logging.getLogger(__name__)


def error_message(payload: Any, default: str = "") -> str:
    """Pull the ``error`` text out of a backend error body."""
    if isinstance(payload, Mapping):
        value = payload.get("error") or payload.get("message")
        if isinstance(value, str):
            return value
    if isinstance(payload, str):
        return payload[:200]
    return default


def classify_http_error(
    exc: TransportError,
    *,
    authenticated: bool,
    unauthorized: type[ApiError] | None = None,
    not_found: type[ApiError] = NotFoundError,
) -> ApiError:
    """Translate an HTTP error status into a domain error.

    Parameters
    ----------
    exc : TransportError
        The non-2xx failure raised by the transport.
    authenticated : bool
        Whether the request carried a bearer token.  A ``401`` on an
        authenticated call always means the session is gone.
    unauthorized : type, optional
        Error raised for a ``401`` on a public call (defaults to
        :class:`AuthenticationError`).
    not_found : type
        Error raised for a ``404``.
    """
    status = exc.status_code
    endpoint = exc.endpoint
    message = error_message(exc.payload, str(exc))
    detail = f"{endpoint} failed: HTTP {status} {message}".rstrip()

    if status == 401:
        if authenticated:
            return SessionExpiredError(detail, status_code=status, endpoint=endpoint)
        cls = unauthorized or AuthenticationError
        return cls(detail, status_code=status, endpoint=endpoint)
    if status == 404:
        return not_found(detail, status_code=status, endpoint=endpoint)
    if status == 409:
        return UserAlreadyExistsError(detail, status_code=status, endpoint=endpoint)
    return ApiError(detail, status_code=status, endpoint=endpoint)


async def send(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    json_body: Mapping[str, Any] | None = None,
    token: str | None = None,
    unauthorized: type[ApiError] | None = None,
    not_found: type[ApiError] = NotFoundError,
) -> Any:
    """Send a request and raise classified errors.

    Network failures (:class:`~payaware.exceptions.NetworkUnavailableError`)
    pass through untouched.
    """
    try:
        return await transport.request(method, endpoint, json_body=json_body, token=token)
    except TransportError as exc:
        if exc.status_code is None or 200 <= exc.status_code < 300:
            raise
        classified = classify_http_error(
            exc,
            authenticated=token is not None,
            unauthorized=unauthorized,
            not_found=not_found,
        )
        _logger.debug("%s %s classified as %s", method, endpoint, type(classified).__name__)
        raise classified from exc


class FetchOutcome(enum.Enum):
    """The three buckets a failed user lookup can fall into."""

    NOT_FOUND = "not_found"
    SESSION_EXPIRED = "session_expired"
    OTHER = "other"


def classify_fetch_error(exc: BaseException) -> FetchOutcome:
    """Bucket any exception raised by a user lookup.

    Anything that is neither a 404 nor an expired session, including
    errors the network layer could not classify, lands in ``OTHER``.
    """
    if isinstance(exc, SessionExpiredError):
        return FetchOutcome.SESSION_EXPIRED
    if isinstance(exc, (UserNotFoundError, NotFoundError)):
        return FetchOutcome.NOT_FOUND
    return FetchOutcome.OTHER
