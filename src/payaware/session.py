"""Session routing: which screen the app lands on.

:class:`SessionRouter` reads the stored credentials and any pending deep
link, asks the backend whether the session is still alive, and hands a
:class:`~payaware.models.route.RouteDecision` to the injected
:class:`Navigator`.  It runs at startup, on foreground resume, on a
periodic timer and whenever a deep link arrives.

Concurrency rules:

* one check in flight at a time; concurrent callers join it;
* timer/foreground triggers within ``coalesce_window`` of the last
  completed check are skipped;
* a deep link cancels the in-flight check and starts a fresh one;
* every decision carries a sequence number and a decision older than
  the last published one is never published.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import UTC, datetime
from typing import Any, Protocol

from payaware._api._common import FetchOutcome, classify_fetch_error
from payaware._constants import KEY_AUTH_TOKEN, KEY_PIN_CODE, KEY_USER_ID
from payaware.config import PayAwareConfig
from payaware.deep_links import DeepLinkSource, PendingDeepLinkQueue
from payaware.exceptions import InvalidDeepLinkError, PayAwareError
from payaware.models.route import RefreshTrigger, Route, RouteDecision
from payaware.models.token import AuthToken
from payaware.storage import CredentialStore, read_credential

_logger = logging.getLogger(__name__)

_COALESCED_TRIGGERS = frozenset({RefreshTrigger.TIMER, RefreshTrigger.FOREGROUND})
_PREEMPTING_TRIGGERS = frozenset({RefreshTrigger.DEEP_LINK})


class Clock(Protocol):
    def now(self) -> datetime:
        """Wall-clock time (aware, UTC) used for token expiry."""
        ...

    def monotonic(self) -> float:
        """Monotonic seconds used for coalescing."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)

    def monotonic(self) -> float:
        return time.monotonic()


class Navigator(Protocol):
    """Presentation-side capability the router redirects through."""

    def navigate(self, decision: RouteDecision) -> None:
        ...

    def show_error(self, error: PayAwareError) -> None:
        ...


class UserLookup(Protocol):
    """The one backend call the router needs."""

    async def fetch_user(self, user_id: str, *, token: str | None = None) -> Any:
        ...


class SessionRouter:
    """Decide and publish the landing route for the current credentials.

    Usage::

        router = SessionRouter(store, client, navigator=navigator)
        client.on_session_expired = router.handle_session_expired
        await router.start()
        ...
        await router.on_foreground()
        await router.on_deep_link("payawareapp://reset-password?token=abc")
        ...
        await router.stop()
    """

    def __init__(
        self,
        store: CredentialStore,
        backend: UserLookup,
        *,
        navigator: Navigator | None = None,
        deep_links: DeepLinkSource | None = None,
        clock: Clock | None = None,
        config: PayAwareConfig | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._navigator = navigator
        self._deep_links: DeepLinkSource = deep_links if deep_links is not None else PendingDeepLinkQueue()
        self._clock: Clock = clock or SystemClock()
        self._config = config or PayAwareConfig()
        self._sequence = 0
        self._published_sequence = 0
        self._current: RouteDecision | None = None
        self._inflight: asyncio.Task[RouteDecision | None] | None = None
        self._last_completed: float | None = None
        self._timer_task: asyncio.Task[None] | None = None

    @property
    def current(self) -> RouteDecision | None:
        """The last decision handed to the navigator."""
        return self._current

    @property
    def deep_links(self) -> DeepLinkSource:
        return self._deep_links

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def decide_initial_route(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> RouteDecision:
        """Compute the landing route.  Never raises.

        Deleting the token after the backend reports an expired session
        is the only mutation; the user id and PIN are never touched.
        """
        sequence = self._next_sequence()

        def decision(route: Route) -> RouteDecision:
            return RouteDecision(route=route, sequence=sequence, trigger=trigger)

        link = self._deep_links.peek()
        if link is not None:
            self._deep_links.consume(link)
            if link.is_reset_password:
                reset_token = link.reset_token
                if reset_token is not None:
                    _logger.info("Reset-password deep link takes precedence over session checks")
                    return RouteDecision.reset_password(reset_token, sequence=sequence, trigger=trigger)
                self._report_error(InvalidDeepLinkError("reset-password link without token", url=link.url))
            else:
                _logger.debug("Ignoring deep link with unhandled path=%s", link.path)

        token = await read_credential(self._store, KEY_AUTH_TOKEN)
        user_id = await read_credential(self._store, KEY_USER_ID)
        pin_code = await read_credential(self._store, KEY_PIN_CODE)

        if token is not None and user_id is not None:
            if AuthToken.from_jwt(token).is_expired(self._clock.now()):
                # Local expiry alone never deletes the token; clock skew must
                # not log the user out.
                _logger.info("Stored token expired locally; pin=%s", pin_code is not None)
                return decision(Route.ENTER_PIN if pin_code is not None else Route.REGISTER)

            try:
                await self._backend.fetch_user(user_id, token=token)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                outcome = classify_fetch_error(exc)
                _logger.info("Session check failed user_id=%s outcome=%s: %s", user_id, outcome.value, exc)
                if outcome is FetchOutcome.NOT_FOUND:
                    return decision(Route.REGISTER)
                if outcome is FetchOutcome.SESSION_EXPIRED:
                    await self._delete_token()
                    return decision(Route.ENTER_PIN if pin_code is not None else Route.REGISTER)
                return decision(Route.LOGIN)
            return decision(Route.SUBSCRIPTION_LIST)

        if token is None and user_id is not None and pin_code is not None:
            return decision(Route.ENTER_PIN)

        return decision(Route.REGISTER)

    async def _delete_token(self) -> None:
        try:
            await self._store.delete(KEY_AUTH_TOKEN)
        except Exception:
            _logger.warning("Could not delete expired auth token", exc_info=True)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def _publish(self, decision: RouteDecision) -> bool:
        if decision.sequence <= self._published_sequence:
            _logger.debug(
                "Dropping stale decision seq=%d (published seq=%d)",
                decision.sequence,
                self._published_sequence,
            )
            return False
        self._published_sequence = decision.sequence
        self._current = decision
        _logger.debug("Route -> %s (seq=%d trigger=%s)", decision.route, decision.sequence, decision.trigger)
        if self._navigator is not None:
            try:
                self._navigator.navigate(decision)
            except Exception:
                _logger.warning("Navigator failed to apply %s", decision.route, exc_info=True)
        return True

    def _report_error(self, error: PayAwareError) -> None:
        _logger.warning("%s", error)
        if self._navigator is not None:
            try:
                self._navigator.show_error(error)
            except Exception:
                _logger.warning("Navigator failed to show error", exc_info=True)

    async def redirect(
        self,
        route: Route,
        *,
        params: dict[str, Any] | None = None,
        trigger: RefreshTrigger = RefreshTrigger.MANUAL,
    ) -> RouteDecision:
        """Publish an explicit route (after login, forgot-PIN, …).

        Takes a fresh sequence number, so any check still in flight can
        no longer override it.
        """
        decision = RouteDecision(route=route, params=params or {}, sequence=self._next_sequence(), trigger=trigger)
        self._publish(decision)
        return decision

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _recently_checked(self) -> bool:
        if self._last_completed is None:
            return False
        return (self._clock.monotonic() - self._last_completed) < self._config.coalesce_window

    async def _run_check(self, trigger: RefreshTrigger) -> RouteDecision | None:
        try:
            decision = await self.decide_initial_route(trigger)
            self._last_completed = self._clock.monotonic()
            return decision if self._publish(decision) else None
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    @staticmethod
    async def _await_check(task: asyncio.Task[RouteDecision | None]) -> RouteDecision | None:
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or not current.cancelling()):
                # Superseded by a newer check.
                return None
            raise

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> RouteDecision | None:
        """Run (or join) a session check and publish its decision.

        Returns ``None`` when the trigger was coalesced into a recent
        check, or when the check was superseded before it finished or
        its decision was older than the one already published.
        """
        inflight = self._inflight
        if inflight is not None and not inflight.done():
            if trigger not in _PREEMPTING_TRIGGERS:
                _logger.debug("Joining in-flight session check (trigger=%s)", trigger)
                return await self._await_check(inflight)
            _logger.debug("Cancelling in-flight session check for trigger=%s", trigger)
            inflight.cancel()
        elif trigger in _COALESCED_TRIGGERS and self._recently_checked():
            _logger.debug("Skipping %s session check; last check is recent", trigger)
            return None

        task = asyncio.create_task(self._run_check(trigger), name=f"payaware-session-{trigger}")
        self._inflight = task
        return await self._await_check(task)

    async def on_foreground(self) -> RouteDecision | None:
        return await self.refresh(RefreshTrigger.FOREGROUND)

    async def on_deep_link(self, url: str) -> RouteDecision | None:
        """Queue *url* and re-route immediately."""
        self._deep_links.push(url)
        return await self.refresh(RefreshTrigger.DEEP_LINK)

    async def handle_session_expired(self) -> RouteDecision:
        """React to a ``SessionExpired`` signal seen during normal use.

        Drops the token (the user id stays) and sends the user to PIN
        entry when a PIN is stored, otherwise to the login screen.
        """
        await self._delete_token()
        user_id = await read_credential(self._store, KEY_USER_ID)
        pin_code = await read_credential(self._store, KEY_PIN_CODE)
        route = Route.ENTER_PIN if user_id is not None and pin_code is not None else Route.LOGIN
        return await self.redirect(route, trigger=RefreshTrigger.SESSION_EXPIRED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _timer_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh(RefreshTrigger.TIMER)
            except Exception:
                _logger.warning("Periodic session check failed", exc_info=True)

    async def start(self) -> RouteDecision | None:
        """Run the startup check and start the periodic re-check timer."""
        decision = await self.refresh(RefreshTrigger.STARTUP)
        interval = self._config.recheck_interval
        if interval > 0 and (self._timer_task is None or self._timer_task.done()):
            self._timer_task = asyncio.create_task(self._timer_loop(interval), name="payaware-session-timer")
        return decision

    async def stop(self) -> None:
        """Cancel the timer and any in-flight check."""
        tasks = [t for t in (self._timer_task, self._inflight) if t is not None and not t.done()]
        self._timer_task = None
        self._inflight = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
