"""Data models for PayAware API responses and session decisions."""

from payaware.models._base import ApiDateTime, PayAwareBaseModel, parse_api_datetime
from payaware.models.deep_link import DeepLink, parse_deep_link
from payaware.models.route import RefreshTrigger, Route, RouteDecision
from payaware.models.subscription import RecurrenceType, Subscription, SubscriptionDraft, parse_cost
from payaware.models.token import AuthToken
from payaware.models.user import LoginResult, User

__all__ = [
    "ApiDateTime",
    "AuthToken",
    "DeepLink",
    "LoginResult",
    "PayAwareBaseModel",
    "RecurrenceType",
    "RefreshTrigger",
    "Route",
    "RouteDecision",
    "Subscription",
    "SubscriptionDraft",
    "User",
    "parse_api_datetime",
    "parse_cost",
    "parse_deep_link",
]
