"""User account models."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AliasChoices, BeforeValidator, Field

from payaware.models._base import PayAwareBaseModel


def _id_to_str(value: Any) -> Any:
    """Backend ids are integers; the client handles them as opaque strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(int(value))
    return value


OpaqueId = Annotated[str, BeforeValidator(_id_to_str)]


class User(PayAwareBaseModel):
    """Account returned by ``GET /users/{id}``."""

    user_id: OpaqueId = Field(validation_alias=AliasChoices("user_id", "ID"))
    name: str = ""
    email: str = ""
    device_token: str | None = None


class LoginResult(PayAwareBaseModel):
    """Body of a successful register / login / PIN-login call."""

    token: str
    user_id: OpaqueId
    message: str | None = None
