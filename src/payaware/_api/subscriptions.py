"""Subscription endpoints (all authenticated).

Endpoints:
  - GET    /subscriptions
  - GET    /subscriptions/{id}
  - POST   /subscriptions
  - PUT    /subscriptions/{id}
  - DELETE /subscriptions/{id}
"""

from __future__ import annotations

import logging
from typing import Any

from payaware._api._common import send
from payaware._transport import Transport
from payaware.exceptions import ApiError
from payaware.models.subscription import Subscription, SubscriptionDraft

_logger = logging.getLogger(__name__)

_ENDPOINT = "/subscriptions"


def _parse_subscription(data: Any, endpoint: str) -> Subscription:
    if not isinstance(data, dict):
        raise ApiError(f"{endpoint} returned {type(data).__name__}, expected object", endpoint=endpoint)
    return Subscription.model_validate(data)


async def list_subscriptions(transport: Transport, token: str) -> list[Subscription]:
    data = await send(transport, "GET", _ENDPOINT, token=token)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ApiError(f"{_ENDPOINT} returned {type(data).__name__}, expected list", endpoint=_ENDPOINT)
    subscriptions = [Subscription.model_validate(item) for item in data if isinstance(item, dict)]
    _logger.debug("Fetched %d subscriptions", len(subscriptions))
    return subscriptions


async def get_subscription(transport: Transport, token: str, subscription_id: str) -> Subscription:
    endpoint = f"{_ENDPOINT}/{subscription_id}"
    return _parse_subscription(await send(transport, "GET", endpoint, token=token), endpoint)


async def create_subscription(transport: Transport, token: str, draft: SubscriptionDraft) -> Subscription:
    data = await send(transport, "POST", _ENDPOINT, json_body=draft.to_payload(), token=token)
    return _parse_subscription(data, _ENDPOINT)


async def update_subscription(
    transport: Transport,
    token: str,
    subscription_id: str,
    draft: SubscriptionDraft,
) -> Subscription:
    endpoint = f"{_ENDPOINT}/{subscription_id}"
    data = await send(transport, "PUT", endpoint, json_body=draft.to_payload(), token=token)
    return _parse_subscription(data, endpoint)


async def delete_subscription(transport: Transport, token: str, subscription_id: str) -> None:
    await send(transport, "DELETE", f"{_ENDPOINT}/{subscription_id}", token=token)
