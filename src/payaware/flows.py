"""Authentication flows that end in a navigation.

Each flow talks to the backend through :class:`~payaware.client.PayAwareClient`
and publishes where the user should go next through the
:class:`~payaware.session.SessionRouter`, so redirects carry a fresh
sequence number and win over any session check still in flight.
"""

from __future__ import annotations

import logging

from payaware._constants import KEY_PIN_CODE, KEY_USER_ID
from payaware.client import PayAwareClient
from payaware.models.route import Route, RouteDecision
from payaware.session import SessionRouter
from payaware.storage import read_credential
from payaware.validation import is_valid_pin

_logger = logging.getLogger(__name__)


class AuthFlow:
    """Login, registration, PIN and password-reset steps."""

    def __init__(self, client: PayAwareClient, router: SessionRouter) -> None:
        self._client = client
        self._router = router

    async def register(self, name: str, email: str, password: str) -> RouteDecision:
        await self._client.register(name, email, password)
        return await self._router.redirect(Route.SUBSCRIPTION_LIST)

    async def login(self, email: str, password: str) -> RouteDecision:
        await self._client.login(email, password)
        return await self._router.redirect(Route.SUBSCRIPTION_LIST)

    async def logout(self) -> RouteDecision:
        await self._client.logout()
        pin_code = await read_credential(self._client.store, KEY_PIN_CODE)
        _logger.info("Logged out; pin kept=%s", pin_code is not None)
        return await self._router.redirect(Route.LOGIN)

    async def enter_pin(self, pin: str) -> RouteDecision:
        """PIN login for the remembered user.

        Without a remembered user id there is nobody to check the PIN
        against, so the user is sent to the full login.  A wrong PIN
        raises :class:`~payaware.exceptions.InvalidPinError` and leaves
        the stored state untouched.
        """
        user_id = await read_credential(self._client.store, KEY_USER_ID)
        if user_id is None:
            _logger.warning("PIN entered but no user id is stored")
            return await self._router.redirect(Route.LOGIN)
        await self._client.login_with_pin(user_id, pin)
        return await self._router.redirect(Route.SUBSCRIPTION_LIST)

    async def set_pin(self, pin: str, confirmation: str) -> RouteDecision:
        if not is_valid_pin(pin):
            raise ValueError("PIN must be exactly 4 digits")
        if pin != confirmation:
            raise ValueError("PIN codes do not match")
        await self._client.set_pin(pin)
        return await self._router.redirect(Route.SUBSCRIPTION_LIST)

    async def forgot_pin(self) -> RouteDecision:
        """Drop the local PIN and force a full login before a new one is set."""
        await self._client.forget_pin()
        return await self._router.redirect(Route.LOGIN)

    async def reset_password(self, reset_token: str, new_password: str) -> RouteDecision:
        await self._client.reset_password(reset_token, new_password)
        return await self._router.redirect(Route.LOGIN)
