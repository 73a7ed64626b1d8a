"""Password reset endpoints (public).

Endpoints:
  - POST /forgot-password   (sends the reset e-mail with the deep link)
  - POST /reset-password    (consumes the token from the deep link)
"""

from __future__ import annotations

from payaware._api._common import send
from payaware._transport import Transport


async def request_password_reset(transport: Transport, email: str) -> None:
    await send(transport, "POST", "/forgot-password", json_body={"email": email})


async def reset_password(transport: Transport, reset_token: str, new_password: str) -> None:
    await send(
        transport,
        "POST",
        "/reset-password",
        json_body={"token": reset_token, "new_password": new_password},
    )
