"""Client-side input validation.

The backend validates again; these checks exist so obviously bad input
never costs a round trip.
"""

from __future__ import annotations

import re

from payaware._constants import PIN_LENGTH, TAG_MAX_LENGTH

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_NAME_RE = re.compile(r"^[a-zA-Zа-яА-ЯёЁ0-9\s\-+.,!]+$")
_PRICE_RE = re.compile(r"^\d+(\.\d{0,2})?$")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

PASSWORD_MIN_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_valid_password(password: str) -> bool:
    """At least six characters with upper, lower, digit and special character."""
    return (
        len(password) >= PASSWORD_MIN_LENGTH
        and any(ch.isupper() for ch in password)
        and any(ch.islower() for ch in password)
        and any(ch.isdigit() for ch in password)
        and bool(_SPECIAL_RE.search(password))
    )


def is_valid_name(name: str) -> bool:
    return bool(_NAME_RE.match(name))


def normalize_price(text: str) -> str:
    """Accept a comma as decimal separator."""
    return text.strip().replace(",", ".", 1)


def is_valid_price(text: str) -> bool:
    """Non-negative number with at most two decimals (``"9.99"``, ``"10,5"``)."""
    return bool(_PRICE_RE.match(normalize_price(text)))


def is_valid_tag(tag: str) -> bool:
    """A tag is optional; when present it is a single word of at most 20 characters."""
    if not tag:
        return True
    return len(tag) <= TAG_MAX_LENGTH and not any(ch.isspace() for ch in tag)


def is_valid_pin(pin: str) -> bool:
    return len(pin) == PIN_LENGTH and pin.isascii() and pin.isdigit()
