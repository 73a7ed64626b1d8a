from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest
from jose import jwt

from payaware.exceptions import SubscriptionValidationError
from payaware.models import (
    AuthToken,
    RecurrenceType,
    Route,
    RouteDecision,
    Subscription,
    SubscriptionDraft,
    User,
    parse_deep_link,
)


def _jwt(**claims: object) -> str:
    return jwt.encode(claims, "test-secret", algorithm="HS256")


# ------------------------------------------------------------------
# Deep links
# ------------------------------------------------------------------


def test_custom_scheme_reset_link_parses_token() -> None:
    link = parse_deep_link("payawareapp://reset-password?token=abc123")

    assert link.path == "reset-password"
    assert link.is_reset_password
    assert link.reset_token == "abc123"


def test_https_reset_link_parses_token() -> None:
    link = parse_deep_link("https://pay-aware.ru/reset-password/?token=xyz&utm=mail")

    assert link.is_reset_password
    assert link.reset_token == "xyz"
    assert link.params["utm"] == "mail"


def test_reset_link_with_blank_token_has_no_token() -> None:
    link = parse_deep_link("payawareapp://reset-password?token=%20")

    assert link.is_reset_password
    assert link.reset_token is None


def test_other_path_is_not_a_reset_link() -> None:
    link = parse_deep_link("payawareapp://subscriptions/42?token=abc")

    assert link.path == "subscriptions/42"
    assert not link.is_reset_password
    assert link.reset_token is None


# ------------------------------------------------------------------
# Tokens
# ------------------------------------------------------------------


def test_auth_token_reads_exp_and_user_id_claims() -> None:
    exp = datetime(2030, 1, 1, tzinfo=UTC)
    token = AuthToken.from_jwt(_jwt(exp=int(exp.timestamp()), user_id=42))

    assert token.user_id == "42"
    assert token.expires_at == exp
    assert token.is_expired(exp + timedelta(seconds=1))
    assert not token.is_expired(exp - timedelta(seconds=1))


def test_undecodable_token_is_never_locally_expired() -> None:
    token = AuthToken.from_jwt("not-a-jwt")

    assert token.expires_at is None
    assert not token.is_expired(datetime(2100, 1, 1, tzinfo=UTC))


def test_out_of_range_expiry_is_ignored() -> None:
    token = AuthToken.from_jwt(_jwt(exp=10**20, user_id=42))

    assert token.user_id == "42"
    assert token.expires_at is None
    assert not token.is_expired(datetime(2100, 1, 1, tzinfo=UTC))


# ------------------------------------------------------------------
# Users and subscriptions
# ------------------------------------------------------------------


def test_user_accepts_integer_ids() -> None:
    user = User.model_validate({"user_id": 7, "name": "Ann", "email": "ann@example.com"})

    assert user.user_id == "7"
    assert user.raw["user_id"] == 7


def test_subscription_parses_backend_payload() -> None:
    sub = Subscription.model_validate(
        {
            "ID": 3,
            "CreatedAt": "2024-05-01T10:00:00Z",
            "DeletedAt": None,
            "user_id": 7,
            "service_name": "Music",
            "cost": 199.0,
            "next_payment_date": "2024-06-01T00:00:00Z",
            "notification_offset": 0,
            "notification_date": "0001-01-01T00:00:00Z",
            "recurrence_type": "",
            "tag": "fun",
        }
    )

    assert sub.subscription_id == "3"
    assert sub.user_id == "7"
    assert sub.next_payment_date == datetime(2024, 6, 1, tzinfo=UTC)
    assert sub.notification_offset is None
    assert sub.notification_date is None
    assert sub.recurrence_type is None


def _draft(**overrides: object) -> SubscriptionDraft:
    fields: dict[str, object] = {
        "service_name": "Cloud storage",
        "cost": "9,5",
        "next_payment_date": datetime(2025, 3, 10, tzinfo=UTC),
        "notification_offset": 1440,
        "recurrence_type": "monthly",
        "tag": "work",
    }
    fields.update(overrides)
    return SubscriptionDraft.build(today=date(2025, 3, 1), **fields)


def test_subscription_draft_builds_payload() -> None:
    draft = _draft()

    assert draft.cost == 9.5
    assert draft.recurrence_type is RecurrenceType.MONTHLY
    assert draft.to_payload() == {
        "service_name": "Cloud storage",
        "cost": 9.5,
        "next_payment_date": "2025-03-10T00:00:00Z",
        "notification_offset": 1440,
        "tag": "work",
        "recurrence_type": "monthly",
    }


def test_subscription_draft_rounds_cost() -> None:
    assert _draft(cost=10.005).cost == 10.01


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"service_name": "Music<script>"}, "service_name"),
        ({"cost": "9.999"}, "cost"),
        ({"cost": "-1"}, "cost"),
        ({"next_payment_date": datetime(2025, 2, 28, tzinfo=UTC)}, "next_payment_date"),
        ({"notification_offset": 30}, "notification_offset"),
        ({"tag": "two words"}, "tag"),
        ({"tag": "x" * 21}, "tag"),
    ],
)
def test_subscription_draft_rejects_invalid_fields(overrides: dict[str, object], field: str) -> None:
    with pytest.raises(SubscriptionValidationError) as exc_info:
        _draft(**overrides)

    assert exc_info.value.field == field


def test_subscription_draft_allows_payment_today() -> None:
    draft = _draft(next_payment_date=datetime(2025, 3, 1, 23, 0, tzinfo=UTC))

    assert draft.next_payment_date.date() == date(2025, 3, 1)


def test_route_decision_reset_password_carries_token() -> None:
    decision = RouteDecision.reset_password("tok", sequence=3)

    assert decision.route is Route.RESET_PASSWORD
    assert decision.reset_token == "tok"
    assert decision.sequence == 3
