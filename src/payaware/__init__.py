"""payaware - Async Python client for the PayAware subscription tracker."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("payaware")
except PackageNotFoundError:
    __version__ = "0+local"
from payaware.client import PayAwareClient
from payaware.config import PayAwareConfig
from payaware.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigError,
    CredentialUnavailableError,
    InvalidDeepLinkError,
    InvalidPinError,
    NetworkUnavailableError,
    NotFoundError,
    PayAwareError,
    RequestTimeoutError,
    SessionExpiredError,
    SubscriptionValidationError,
    TransportError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from payaware.flows import AuthFlow
from payaware.models import (
    AuthToken,
    DeepLink,
    RecurrenceType,
    RefreshTrigger,
    Route,
    RouteDecision,
    Subscription,
    SubscriptionDraft,
    User,
    parse_deep_link,
)
from payaware.session import Navigator, SessionRouter, SystemClock
from payaware.storage import (
    CredentialStore,
    EncryptedFileCredentialStore,
    MemoryCredentialStore,
    generate_credentials_key,
    open_credential_store,
)

__all__ = [
    "__version__",
    "ApiError",
    "AuthFlow",
    "AuthToken",
    "AuthenticationError",
    "ConfigError",
    "CredentialStore",
    "CredentialUnavailableError",
    "DeepLink",
    "EncryptedFileCredentialStore",
    "InvalidDeepLinkError",
    "InvalidPinError",
    "MemoryCredentialStore",
    "Navigator",
    "NetworkUnavailableError",
    "NotFoundError",
    "PayAwareClient",
    "PayAwareConfig",
    "PayAwareError",
    "RecurrenceType",
    "RefreshTrigger",
    "RequestTimeoutError",
    "Route",
    "RouteDecision",
    "SessionExpiredError",
    "SessionRouter",
    "Subscription",
    "SubscriptionDraft",
    "SubscriptionValidationError",
    "SystemClock",
    "TransportError",
    "User",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "generate_credentials_key",
    "open_credential_store",
    "parse_deep_link",
]
