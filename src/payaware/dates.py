"""Due-date countdowns and list helpers for subscriptions."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from payaware.models.subscription import Subscription


class CountdownUnit(StrEnum):
    UNKNOWN = "unknown"
    PASSED = "passed"
    TODAY = "today"
    TOMORROW = "tomorrow"
    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


@dataclass(frozen=True)
class PaymentCountdown:
    """How far away a payment is, in the coarsest unit that fits.

    ``amount`` is set for ``DAYS``/``MONTHS``/``YEARS`` only.
    """

    unit: CountdownUnit
    amount: int | None = None


def payment_countdown(next_payment: datetime | None, now: datetime) -> PaymentCountdown:
    """Countdown in calendar days from *now* to the payment day.

    Dates are compared in *now*'s timezone; a payment is due for the
    whole of its day.  Below 31 days the countdown is in days, below a
    year in 30-day months, otherwise in 365-day years (all rounded up).
    """
    if next_payment is None:
        return PaymentCountdown(CountdownUnit.UNKNOWN)

    if now.tzinfo is not None and next_payment.tzinfo is not None:
        next_payment = next_payment.astimezone(now.tzinfo)
    days = (next_payment.date() - now.date()).days

    if days < 0:
        return PaymentCountdown(CountdownUnit.PASSED)
    if days == 0:
        return PaymentCountdown(CountdownUnit.TODAY)
    if days == 1:
        return PaymentCountdown(CountdownUnit.TOMORROW)
    if days < 31:
        return PaymentCountdown(CountdownUnit.DAYS, days)
    if days < 365:
        return PaymentCountdown(CountdownUnit.MONTHS, math.ceil(days / 30))
    return PaymentCountdown(CountdownUnit.YEARS, math.ceil(days / 365))


def total_cost(subscriptions: Iterable[Subscription]) -> float:
    return round(sum(sub.cost for sub in subscriptions), 2)


def filter_by_tag(subscriptions: Iterable[Subscription], tag: str) -> list[Subscription]:
    """Subscriptions carrying *tag*; an empty tag selects everything."""
    if not tag:
        return list(subscriptions)
    return [sub for sub in subscriptions if sub.tag == tag]


def collect_tags(subscriptions: Iterable[Subscription]) -> list[str]:
    return sorted({sub.tag for sub in subscriptions if sub.tag})
