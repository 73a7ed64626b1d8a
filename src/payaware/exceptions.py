"""Custom exception hierarchy for payaware."""

from __future__ import annotations


class PayAwareError(Exception):
    """Base exception for all payaware errors."""


class ConfigError(PayAwareError):
    """Invalid or missing configuration."""


class CredentialUnavailableError(PayAwareError):
    """Credential storage could not be read or written.

    Callers that only need to *read* a credential treat this as
    "value absent" and carry on.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class TransportError(PayAwareError):
    """HTTP-level failure (non-2xx status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        payload: object = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.payload = payload
        super().__init__(message)


class NetworkUnavailableError(PayAwareError):
    """The backend could not be reached (connection refused, DNS, reset)."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class RequestTimeoutError(NetworkUnavailableError):
    """The backend did not answer within the configured timeout."""


class ApiError(PayAwareError):
    """Backend answered with an error status (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AuthenticationError(ApiError):
    """Credentials were rejected (wrong email/password)."""


class SessionExpiredError(AuthenticationError):
    """Bearer token rejected by the backend.

    Raised when an authenticated call answers ``401``.  The stored
    token must be discarded; the user id is kept so PIN login still
    knows whose PIN to check.
    """


class InvalidPinError(AuthenticationError):
    """PIN login rejected because the PIN does not match."""


class NotFoundError(ApiError):
    """Requested resource does not exist (HTTP 404)."""


class UserNotFoundError(NotFoundError):
    """The user id is unknown to the backend (deleted server-side)."""


class UserAlreadyExistsError(ApiError):
    """Registration refused because the email is already taken (HTTP 409)."""


class InvalidDeepLinkError(PayAwareError):
    """A ``reset-password`` link arrived without its ``token`` parameter."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class SubscriptionValidationError(PayAwareError, ValueError):
    """Subscription input rejected by client-side validation."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)
