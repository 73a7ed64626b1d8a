"""User endpoints.

Endpoints:
  - POST /users                 (register, public)
  - POST /users/login           (email/password login, public)
  - POST /login-with-pin        (PIN login, public)
  - GET  /users/{id}            (current user)
  - POST /set-pin               (store PIN server-side)
  - PUT  /users/device-token    (push registration)
"""

from __future__ import annotations

import logging
from typing import Any

from payaware._api._common import send
from payaware._redact import redact_for_log
from payaware._transport import Transport
from payaware.exceptions import ApiError, InvalidPinError, UserNotFoundError
from payaware.models.user import LoginResult, User

_logger = logging.getLogger(__name__)

_REGISTER_ENDPOINT = "/users"
_LOGIN_ENDPOINT = "/users/login"
_PIN_LOGIN_ENDPOINT = "/login-with-pin"
_SET_PIN_ENDPOINT = "/set-pin"
_DEVICE_TOKEN_ENDPOINT = "/users/device-token"


def _user_id_int(user_id: str) -> int | str:
    # The backend binds user_id to an int; keep non-numeric ids as-is.
    return int(user_id) if user_id.isdigit() else user_id


def _parse_login_result(data: Any, endpoint: str) -> LoginResult:
    if not isinstance(data, dict) or not data.get("token") or data.get("user_id") is None:
        raise ApiError(f"{endpoint} response missing token fields", endpoint=endpoint)
    _logger.debug("%s response parsed=%s", endpoint, redact_for_log(data))
    return LoginResult.model_validate(data)


async def register(transport: Transport, name: str, email: str, password: str) -> LoginResult:
    body = {"name": name, "email": email, "password": password}
    data = await send(transport, "POST", _REGISTER_ENDPOINT, json_body=body, not_found=UserNotFoundError)
    return _parse_login_result(data, _REGISTER_ENDPOINT)


async def login(transport: Transport, email: str, password: str) -> LoginResult:
    """Email/password login.

    Raises
    ------
    AuthenticationError
        Wrong email or password (HTTP 401).
    UserNotFoundError
        No account for this email (HTTP 404).
    """
    body = {"email": email, "password": password}
    data = await send(transport, "POST", _LOGIN_ENDPOINT, json_body=body, not_found=UserNotFoundError)
    return _parse_login_result(data, _LOGIN_ENDPOINT)


async def login_with_pin(transport: Transport, user_id: str, pin: str) -> LoginResult:
    """PIN login for a remembered user id; a wrong PIN raises :class:`InvalidPinError`."""
    body = {"user_id": _user_id_int(user_id), "pin_code": pin}
    data = await send(
        transport,
        "POST",
        _PIN_LOGIN_ENDPOINT,
        json_body=body,
        unauthorized=InvalidPinError,
        not_found=UserNotFoundError,
    )
    return _parse_login_result(data, _PIN_LOGIN_ENDPOINT)


async def fetch_user(transport: Transport, token: str, user_id: str) -> User:
    data = await send(transport, "GET", f"/users/{user_id}", token=token, not_found=UserNotFoundError)
    if not isinstance(data, dict):
        raise ApiError("user response is not an object", endpoint="/users/{id}")
    return User.model_validate(data)


async def set_pin(transport: Transport, token: str, user_id: str, pin: str) -> None:
    body = {"user_id": _user_id_int(user_id), "pin_code": pin}
    await send(transport, "POST", _SET_PIN_ENDPOINT, json_body=body, token=token, not_found=UserNotFoundError)


async def update_device_token(transport: Transport, token: str, user_id: str, device_token: str) -> None:
    body = {"device_token": device_token, "user_id": _user_id_int(user_id)}
    await send(
        transport,
        "PUT",
        _DEVICE_TOKEN_ENDPOINT,
        json_body=body,
        token=token,
        not_found=UserNotFoundError,
    )
    _logger.debug("Device token updated for user_id=%s", user_id)
