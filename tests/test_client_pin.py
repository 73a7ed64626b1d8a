from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from payaware.client import PayAwareClient
from payaware.config import PayAwareConfig
from payaware.exceptions import (
    InvalidPinError,
    PayAwareError,
    SessionExpiredError,
    SubscriptionValidationError,
    TransportError,
    UserNotFoundError,
)
from payaware.flows import AuthFlow
from payaware.models.route import RefreshTrigger, Route, RouteDecision
from payaware.models.subscription import SubscriptionDraft
from payaware.session import SessionRouter
from payaware.storage import MemoryCredentialStore


class _ScriptedTransport:
    """Answers by ``(method, endpoint)``; exceptions in the script are raised."""

    def __init__(self, script: dict[tuple[str, str], Any]) -> None:
        self._script = script
        self.calls: list[tuple[str, str, Any, str | None]] = []

    async def request(self, method: str, endpoint: str, *, json_body: Any = None, token: str | None = None) -> Any:
        self.calls.append((method, endpoint, json_body, token))
        result = self._script[(method, endpoint)]
        if isinstance(result, Exception):
            raise result
        return result


def _http_error(status: int, endpoint: str, message: str) -> TransportError:
    return TransportError(f"HTTP {status}", status_code=status, endpoint=endpoint, payload={"error": message})


@dataclass
class _RecordingNavigator:
    decisions: list[RouteDecision] = field(default_factory=list)

    def navigate(self, decision: RouteDecision) -> None:
        self.decisions.append(decision)

    def show_error(self, error: PayAwareError) -> None:  # pragma: no cover
        raise AssertionError(f"unexpected error {error}")


def _make_flow(
    values: dict[str, str],
    script: dict[tuple[str, str], Any],
) -> tuple[AuthFlow, PayAwareClient, MemoryCredentialStore, _ScriptedTransport, _RecordingNavigator]:
    store = MemoryCredentialStore(values)
    transport = _ScriptedTransport(script)
    client = PayAwareClient(store=store, transport=transport)
    navigator = _RecordingNavigator()
    router = SessionRouter(store, client, navigator=navigator, config=PayAwareConfig(recheck_interval=0))
    client.on_session_expired = router.handle_session_expired
    return AuthFlow(client, router), client, store, transport, navigator


# ------------------------------------------------------------------
# PIN
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pin_set_then_pin_login_stores_fresh_token() -> None:
    flow, client, store, transport, navigator = _make_flow(
        {"authToken": "old-token", "userId": "42"},
        {
            ("POST", "/set-pin"): {"message": "PIN set"},
            ("POST", "/login-with-pin"): {"token": "fresh-token", "user_id": 42},
        },
    )

    await flow.set_pin("1234", "1234")
    assert await store.get("pinCode") == "1234"
    assert transport.calls[0] == ("POST", "/set-pin", {"user_id": 42, "pin_code": "1234"}, "old-token")

    await store.delete("authToken")
    decision = await flow.enter_pin("1234")

    assert decision.route is Route.SUBSCRIPTION_LIST
    assert await store.get("authToken") == "fresh-token"
    assert await store.get("userId") == "42"
    assert transport.calls[-1] == ("POST", "/login-with-pin", {"user_id": 42, "pin_code": "1234"}, None)
    assert [d.route for d in navigator.decisions] == [Route.SUBSCRIPTION_LIST, Route.SUBSCRIPTION_LIST]


@pytest.mark.asyncio
async def test_wrong_pin_raises_and_leaves_state_untouched() -> None:
    values = {"userId": "42", "pinCode": "1234"}
    flow, _, store, _, navigator = _make_flow(
        values,
        {("POST", "/login-with-pin"): _http_error(401, "/login-with-pin", "Invalid PIN")},
    )

    with pytest.raises(InvalidPinError):
        await flow.enter_pin("9999")

    assert store.snapshot() == values
    assert navigator.decisions == []


@pytest.mark.asyncio
async def test_enter_pin_without_user_id_goes_to_login() -> None:
    flow, _, _, transport, _ = _make_flow({"pinCode": "1234"}, {})

    decision = await flow.enter_pin("1234")

    assert decision.route is Route.LOGIN
    assert transport.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(("pin", "confirmation"), [("12a4", "12a4"), ("123", "123"), ("1234", "4321")])
async def test_set_pin_rejects_bad_input_without_calling_backend(pin: str, confirmation: str) -> None:
    flow, _, store, transport, _ = _make_flow({"authToken": "tok", "userId": "42"}, {})

    with pytest.raises(ValueError):
        await flow.set_pin(pin, confirmation)

    assert transport.calls == []
    assert await store.get("pinCode") is None


@pytest.mark.asyncio
async def test_forgot_pin_clears_pin_locally_and_goes_to_login() -> None:
    flow, _, store, transport, _ = _make_flow({"authToken": "tok", "userId": "42", "pinCode": "1234"}, {})

    decision = await flow.forgot_pin()

    assert decision.route is Route.LOGIN
    assert store.snapshot() == {"authToken": "tok", "userId": "42"}
    assert transport.calls == []


# ------------------------------------------------------------------
# Session expiry during use
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_expired_session_during_use_notifies_router() -> None:
    _, client, store, _, navigator = _make_flow(
        {"authToken": "tok", "userId": "42", "pinCode": "1234"},
        {("GET", "/subscriptions"): _http_error(401, "/subscriptions", "Token has expired")},
    )

    with pytest.raises(SessionExpiredError):
        await client.list_subscriptions()

    assert await store.get("authToken") is None
    assert await store.get("userId") == "42"
    assert len(navigator.decisions) == 1
    assert navigator.decisions[0].route is Route.ENTER_PIN
    assert navigator.decisions[0].trigger is RefreshTrigger.SESSION_EXPIRED


@pytest.mark.asyncio
async def test_missing_token_counts_as_expired_session() -> None:
    _, client, _, transport, navigator = _make_flow({"userId": "42"}, {})

    with pytest.raises(SessionExpiredError):
        await client.list_subscriptions()

    assert transport.calls == []
    assert navigator.decisions[0].route is Route.LOGIN


@pytest.mark.asyncio
async def test_fetch_user_errors_bypass_the_session_hook() -> None:
    _, client, store, _, navigator = _make_flow(
        {"authToken": "tok", "userId": "42"},
        {("GET", "/users/42"): _http_error(401, "/users/42", "Token has expired")},
    )

    with pytest.raises(SessionExpiredError):
        await client.fetch_user("42")

    assert await store.get("authToken") == "tok"
    assert navigator.decisions == []


# ------------------------------------------------------------------
# Account and subscriptions
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_stores_token_and_user_id() -> None:
    flow, _, store, _, _ = _make_flow(
        {},
        {("POST", "/users/login"): {"token": "tok", "user_id": 42}},
    )

    decision = await flow.login("ann@example.com", "S3cret!")

    assert decision.route is Route.SUBSCRIPTION_LIST
    assert store.snapshot() == {"authToken": "tok", "userId": "42"}


@pytest.mark.asyncio
async def test_login_for_unknown_email_raises_user_not_found() -> None:
    flow, _, store, _, navigator = _make_flow(
        {},
        {("POST", "/users/login"): _http_error(404, "/users/login", "User not found")},
    )

    with pytest.raises(UserNotFoundError):
        await flow.login("nobody@example.com", "S3cret!")

    assert store.snapshot() == {}
    assert navigator.decisions == []


@pytest.mark.asyncio
async def test_reset_password_drops_session_but_keeps_pin() -> None:
    flow, _, store, transport, _ = _make_flow(
        {"authToken": "tok", "userId": "42", "pinCode": "1234"},
        {("POST", "/reset-password"): {"message": "Password updated"}},
    )

    decision = await flow.reset_password("abc123", "N3w!pass")

    assert decision.route is Route.LOGIN
    assert store.snapshot() == {"pinCode": "1234"}
    assert transport.calls[0][2] == {"token": "abc123", "new_password": "N3w!pass"}


def _reminder_draft() -> SubscriptionDraft:
    today = datetime.now(UTC).date()
    return SubscriptionDraft.build(
        today=today,
        service_name="Music",
        cost="4.99",
        next_payment_date=datetime.combine(today + timedelta(days=3), datetime.min.time(), tzinfo=UTC),
        notification_offset=60,
    )


@pytest.mark.asyncio
async def test_reminder_requires_registered_device_token() -> None:
    _, client, _, transport, _ = _make_flow({"authToken": "tok", "userId": "42"}, {})

    with pytest.raises(SubscriptionValidationError) as exc_info:
        await client.create_subscription(_reminder_draft())

    assert exc_info.value.field == "notification_offset"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_create_subscription_posts_draft() -> None:
    _, client, _, transport, _ = _make_flow(
        {"authToken": "tok", "userId": "42", "deviceToken": "ExponentPushToken[x]"},
        {("POST", "/subscriptions"): {"ID": 5, "service_name": "Music", "cost": 4.99, "notification_offset": 60}},
    )

    created = await client.create_subscription(_reminder_draft())

    assert created.subscription_id == "5"
    method, endpoint, body, token = transport.calls[0]
    assert (method, endpoint, token) == ("POST", "/subscriptions", "tok")
    assert body["notification_offset"] == 60
    assert body["cost"] == 4.99


@pytest.mark.asyncio
async def test_client_without_transport_must_be_entered() -> None:
    client = PayAwareClient(store=MemoryCredentialStore())

    with pytest.raises(PayAwareError, match="not initialized"):
        await client.request_password_reset("ann@example.com")
