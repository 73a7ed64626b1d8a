"""Subscription models.

:class:`Subscription` is what the backend returns; :class:`SubscriptionDraft`
is the validated payload the client sends on create/update.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from payaware._constants import NOTIFICATION_OFFSETS
from payaware.exceptions import SubscriptionValidationError
from payaware.models._base import ApiDateTime, PayAwareBaseModel
from payaware.models.user import OpaqueId
from payaware.validation import is_valid_name, is_valid_price, is_valid_tag, normalize_price


class RecurrenceType(StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Subscription(PayAwareBaseModel):
    """A recurring payment tracked for the user."""

    subscription_id: OpaqueId = Field(validation_alias=AliasChoices("ID", "id", "subscription_id"))
    user_id: OpaqueId | None = None
    service_name: str = ""
    cost: float = 0.0
    next_payment_date: ApiDateTime = None
    notification_offset: int | None = None
    notification_date: ApiDateTime = None
    recurrence_type: RecurrenceType | None = None
    tag: str = ""

    @field_validator("recurrence_type", mode="before")
    @classmethod
    def _empty_recurrence(cls, value: Any) -> Any:
        # The backend stores "" when no recurrence was picked.
        if value == "":
            return None
        return value

    @field_validator("notification_offset", mode="before")
    @classmethod
    def _zero_offset(cls, value: Any) -> Any:
        if value in (0, "0", ""):
            return None
        return value


def parse_cost(text: str | float | Decimal) -> float:
    """Parse a user-entered cost and round it to two decimals.

    Raises
    ------
    ValueError
        If *text* is not a non-negative number with at most two decimals.
    """
    if isinstance(text, str):
        if not is_valid_price(text):
            raise ValueError(f"invalid cost {text!r}")
        text = normalize_price(text)
    try:
        value = Decimal(str(text))
    except InvalidOperation as exc:
        raise ValueError(f"invalid cost {text!r}") from exc
    if not value.is_finite() or value < 0:
        raise ValueError(f"invalid cost {text!r}")
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class SubscriptionDraft(BaseModel):
    """Validated subscription payload for create/update requests.

    Build drafts with :meth:`build`, which reports the first failing
    field as :class:`~payaware.exceptions.SubscriptionValidationError`.
    Payment dates before ``today`` (validation context, defaults to the
    current UTC date) are rejected.
    """

    model_config = ConfigDict(frozen=True)

    service_name: str
    cost: float
    next_payment_date: datetime
    notification_offset: int | None = None
    recurrence_type: RecurrenceType | None = None
    tag: str = ""

    @classmethod
    def build(cls, *, today: date | None = None, **fields: Any) -> SubscriptionDraft:
        context = {"today": today} if today is not None else None
        try:
            return cls.model_validate(fields, context=context)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = first.get("loc") or ("",)
            raise SubscriptionValidationError(first["msg"], field=str(loc[0])) from exc

    @field_validator("service_name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value or not is_valid_name(value):
            raise ValueError("service name contains invalid characters")
        return value

    @field_validator("cost", mode="before")
    @classmethod
    def _check_cost(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
            raise ValueError(f"invalid cost {value!r}")
        return parse_cost(value)

    @field_validator("next_payment_date")
    @classmethod
    def _check_date(cls, value: datetime, info: ValidationInfo) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        today = (info.context or {}).get("today") or datetime.now(UTC).date()
        if value.date() < today:
            raise ValueError("next payment date is in the past")
        return value

    @field_validator("notification_offset")
    @classmethod
    def _check_offset(cls, value: int | None) -> int | None:
        if value is not None and value not in NOTIFICATION_OFFSETS:
            raise ValueError(f"notification offset must be one of {NOTIFICATION_OFFSETS} minutes, got {value}")
        return value

    @field_validator("tag")
    @classmethod
    def _check_tag(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_tag(value):
            raise ValueError("tag must be a single word of at most 20 characters")
        return value

    def to_payload(self) -> dict[str, Any]:
        """JSON body for ``POST``/``PUT /subscriptions``."""
        payload: dict[str, Any] = {
            "service_name": self.service_name,
            "cost": self.cost,
            "next_payment_date": self.next_payment_date.isoformat().replace("+00:00", "Z"),
            "notification_offset": self.notification_offset,
            "tag": self.tag,
        }
        if self.recurrence_type is not None:
            payload["recurrence_type"] = self.recurrence_type.value
        return payload
