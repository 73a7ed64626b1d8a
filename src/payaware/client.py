"""High-level async client for the PayAware backend."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from payaware._api import password as _password_api
from payaware._api import subscriptions as _subscriptions_api
from payaware._api import users as _users_api
from payaware._constants import KEY_AUTH_TOKEN, KEY_DEVICE_TOKEN, KEY_PIN_CODE, KEY_USER_ID
from payaware._transport import HttpTransport, Transport
from payaware.config import PayAwareConfig
from payaware.exceptions import PayAwareError, SessionExpiredError, SubscriptionValidationError
from payaware.models.subscription import Subscription, SubscriptionDraft
from payaware.models.token import AuthToken
from payaware.models.user import LoginResult, User
from payaware.storage import CredentialStore, open_credential_store, read_credential
from payaware.validation import is_valid_pin

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class PayAwareClient:
    """Async client for the PayAware API.

    Credentials (token, user id, PIN, device token) live in the given
    :class:`~payaware.storage.CredentialStore`; every authenticated call
    reads the token from there.

    Usage::

        async with PayAwareClient(config, store) as client:
            await client.login("me@example.com", "S3cret!")
            subscriptions = await client.list_subscriptions()

    When ``on_session_expired`` is set, it is awaited whenever an
    authenticated call (other than :meth:`fetch_user`) is rejected with
    :class:`~payaware.exceptions.SessionExpiredError`, before the error
    propagates.  Wire it to
    :meth:`~payaware.session.SessionRouter.handle_session_expired`.
    """

    def __init__(
        self,
        config: PayAwareConfig | None = None,
        store: CredentialStore | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        on_session_expired: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._config = config or PayAwareConfig()
        self._store: CredentialStore = store if store is not None else open_credential_store(self._config)
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self.on_session_expired = on_session_expired

    @property
    def store(self) -> CredentialStore:
        return self._store

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PayAwareClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise PayAwareError("Client not initialized. Use 'async with PayAwareClient(...) as client:'")
        return self._transport

    async def _require_token(self) -> str:
        token = await read_credential(self._store, KEY_AUTH_TOKEN)
        if token is None:
            raise SessionExpiredError("No auth token stored; log in first")
        return token

    async def _require_user_id(self) -> str:
        user_id = await read_credential(self._store, KEY_USER_ID)
        if user_id is None:
            raise SessionExpiredError("No user id stored; log in first")
        return user_id

    async def _call_authenticated(self, fn: Callable[[Transport, str], Awaitable[T]]) -> T:
        """Run an authenticated call, notifying the session hook on expiry."""
        transport = self._require_transport()
        try:
            token = await self._require_token()
            return await fn(transport, token)
        except SessionExpiredError:
            if self.on_session_expired is not None:
                await self.on_session_expired()
            raise

    async def _store_login(self, result: LoginResult) -> AuthToken:
        await self._store.set(KEY_AUTH_TOKEN, result.token)
        await self._store.set(KEY_USER_ID, result.user_id)
        return AuthToken.from_jwt(result.token)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> AuthToken:
        """Create an account and store its token and user id."""
        result = await _users_api.register(self._require_transport(), name, email, password)
        _logger.info("Registered user_id=%s", result.user_id)
        return await self._store_login(result)

    async def login(self, email: str, password: str) -> AuthToken:
        """Email/password login; stores the token and user id."""
        result = await _users_api.login(self._require_transport(), email, password)
        _logger.info("Logged in user_id=%s", result.user_id)
        return await self._store_login(result)

    async def logout(self) -> None:
        """Forget the session locally.  The PIN and device token stay."""
        await self._store.delete(KEY_AUTH_TOKEN)
        await self._store.delete(KEY_USER_ID)

    async def fetch_user(self, user_id: str, *, token: str | None = None) -> User:
        """Fetch *user_id*, using *token* or the stored one.

        Errors are not routed through ``on_session_expired``: the
        session router calls this itself and applies its own policy.
        """
        transport = self._require_transport()
        if token is None:
            token = await self._require_token()
        return await _users_api.fetch_user(transport, token, user_id)

    # ------------------------------------------------------------------
    # PIN
    # ------------------------------------------------------------------

    async def set_pin(self, pin: str) -> None:
        """Register a 4-digit PIN with the backend and remember it locally."""
        if not is_valid_pin(pin):
            raise ValueError("PIN must be exactly 4 digits")
        user_id = await self._require_user_id()
        await self._call_authenticated(lambda transport, token: _users_api.set_pin(transport, token, user_id, pin))
        await self._store.set(KEY_PIN_CODE, pin)
        _logger.info("PIN set for user_id=%s", user_id)

    async def login_with_pin(self, user_id: str, pin: str) -> AuthToken:
        """Exchange the remembered user id and PIN for a fresh token.

        Raises
        ------
        InvalidPinError
            Wrong PIN.  Nothing is stored or deleted; the caller may retry.
        """
        result = await _users_api.login_with_pin(self._require_transport(), user_id, pin)
        await self._store.set(KEY_AUTH_TOKEN, result.token)
        if result.user_id != user_id:
            _logger.warning("PIN login returned user_id=%s for user_id=%s", result.user_id, user_id)
            await self._store.set(KEY_USER_ID, result.user_id)
        _logger.info("PIN login succeeded user_id=%s", result.user_id)
        return AuthToken.from_jwt(result.token)

    async def forget_pin(self) -> None:
        """Drop the local PIN.  The PIN registered on the backend is left as is."""
        await self._store.delete(KEY_PIN_CODE)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def list_subscriptions(self) -> list[Subscription]:
        return await self._call_authenticated(_subscriptions_api.list_subscriptions)

    async def get_subscription(self, subscription_id: str) -> Subscription:
        return await self._call_authenticated(
            lambda transport, token: _subscriptions_api.get_subscription(transport, token, subscription_id)
        )

    async def _check_reminder(self, draft: SubscriptionDraft) -> None:
        if draft.notification_offset is not None and await self.cached_device_token() is None:
            raise SubscriptionValidationError(
                "reminders need push notifications; register a device token first",
                field="notification_offset",
            )

    async def create_subscription(self, draft: SubscriptionDraft) -> Subscription:
        await self._check_reminder(draft)
        return await self._call_authenticated(
            lambda transport, token: _subscriptions_api.create_subscription(transport, token, draft)
        )

    async def update_subscription(self, subscription_id: str, draft: SubscriptionDraft) -> Subscription:
        await self._check_reminder(draft)
        return await self._call_authenticated(
            lambda transport, token: _subscriptions_api.update_subscription(transport, token, subscription_id, draft)
        )

    async def delete_subscription(self, subscription_id: str) -> None:
        await self._call_authenticated(
            lambda transport, token: _subscriptions_api.delete_subscription(transport, token, subscription_id)
        )

    # ------------------------------------------------------------------
    # Push registration
    # ------------------------------------------------------------------

    async def update_device_token(self, device_token: str) -> None:
        """Send *device_token* to the backend for the stored user."""
        if not device_token:
            raise ValueError("device token must not be empty")
        user_id = await self._require_user_id()
        await self._call_authenticated(
            lambda transport, token: _users_api.update_device_token(transport, token, user_id, device_token)
        )

    async def cached_device_token(self) -> str | None:
        return await read_credential(self._store, KEY_DEVICE_TOKEN)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> None:
        await _password_api.request_password_reset(self._require_transport(), email)

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        """Set a new password with the token from the reset link.

        The local session is dropped so the next start lands on login.
        """
        await _password_api.reset_password(self._require_transport(), reset_token, new_password)
        await self.logout()
