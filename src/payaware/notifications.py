"""Push-notification registration.

The push SDK itself is external; :class:`PushProvider` is the slice of
it this library needs.  Reminder scheduling and delivery happen on the
backend.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

from payaware._constants import KEY_AUTH_TOKEN, KEY_DEVICE_TOKEN, KEY_USER_ID
from payaware._redact import redact_token
from payaware.client import PayAwareClient
from payaware.storage import read_credential

_logger = logging.getLogger(__name__)


class PermissionStatus(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class PushProvider(Protocol):
    async def get_permission_status(self) -> PermissionStatus:
        ...

    async def request_permission(self) -> PermissionStatus:
        ...

    async def get_device_token(self) -> str | None:
        ...


async def send_device_token(client: PayAwareClient, device_token: str) -> bool:
    """Send *device_token* to the backend if a session is stored.

    Returns ``False`` (and logs) when there is no token or user id yet;
    the next registration after login will send it.
    """
    store = client.store
    if await read_credential(store, KEY_AUTH_TOKEN) is None:
        _logger.warning("No auth token stored; device token not sent")
        return False
    if await read_credential(store, KEY_USER_ID) is None:
        _logger.warning("No user id stored; device token not sent")
        return False
    await client.update_device_token(device_token)
    _logger.info("Device token %s sent to backend", redact_token(device_token))
    return True


async def register_for_push(client: PayAwareClient, provider: PushProvider) -> str | None:
    """Obtain the device token and sync it with the backend when it changed.

    Returns the device token, or ``None`` when permission is denied or
    the provider fails.  Backend failures while syncing propagate.
    """
    try:
        status = await provider.get_permission_status()
        if status != PermissionStatus.GRANTED:
            status = await provider.request_permission()
        if status != PermissionStatus.GRANTED:
            _logger.warning("Push permission not granted (status=%s)", status)
            return None
        device_token = await provider.get_device_token()
    except Exception:
        _logger.warning("Push provider failed", exc_info=True)
        return None

    if not device_token:
        _logger.error("Push provider returned no device token")
        return None

    store = client.store
    cached = await read_credential(store, KEY_DEVICE_TOKEN)
    if cached == device_token:
        _logger.debug("Device token unchanged; backend update skipped")
        return device_token

    # Cached only after the backend accepted it.
    if await send_device_token(client, device_token):
        await store.set(KEY_DEVICE_TOKEN, device_token)
    return device_token


class NotificationDispatcher:
    """Fan incoming push payloads out to registered listeners.

    Listener failures are logged and do not stop the other listeners.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[dict[str, Any]], Awaitable[None] | None]] = []

    def add_listener(self, listener: Callable[[dict[str, Any]], Awaitable[None] | None]) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def dispatch(self, notification: dict[str, Any]) -> None:
        _logger.debug("Notification received title=%s", notification.get("title"))
        for listener in list(self._listeners):
            try:
                result = listener(notification)
                if result is not None:
                    await result
            except Exception:
                _logger.warning("Notification listener failed", exc_info=True)
