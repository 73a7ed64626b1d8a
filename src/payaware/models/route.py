"""Route decisions handed to the navigation layer."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Route(StrEnum):
    """Screens the session logic can land on.

    Values match the screen names the mobile navigator registers.
    """

    REGISTER = "Register"
    LOGIN = "Login"
    ENTER_PIN = "EnterPinScreen"
    SUBSCRIPTION_LIST = "SubscriptionList"
    RESET_PASSWORD = "ResetPasswordScreen"


class RefreshTrigger(StrEnum):
    STARTUP = "startup"
    FOREGROUND = "foreground"
    TIMER = "timer"
    DEEP_LINK = "deep_link"
    MANUAL = "manual"
    SESSION_EXPIRED = "session_expired"


class RouteDecision(BaseModel):
    """Where the app should be, plus enough metadata to order decisions.

    ``sequence`` increases monotonically per router; a navigator must
    never apply a decision older than the one it already shows.
    """

    model_config = ConfigDict(frozen=True)

    route: Route
    params: dict[str, Any] = Field(default_factory=dict)
    sequence: int = 0
    trigger: RefreshTrigger = RefreshTrigger.MANUAL

    @classmethod
    def reset_password(cls, token: str, **kwargs: Any) -> RouteDecision:
        return cls(route=Route.RESET_PASSWORD, params={"token": token}, **kwargs)

    @property
    def reset_token(self) -> str | None:
        token = self.params.get("token")
        return token if isinstance(token, str) else None
