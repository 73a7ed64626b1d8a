"""HTTP transport with bearer authentication and a fixed request timeout."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from payaware._constants import USER_AGENT
from payaware._redact import redact_for_log, redact_token
from payaware.config import PayAwareConfig
from payaware.exceptions import NetworkUnavailableError, RequestTimeoutError, TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        token: str | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """JSON-over-HTTP transport for the PayAware backend.

    Non-2xx answers raise :class:`TransportError` carrying the status code
    and the decoded error body; the endpoint modules turn those into the
    domain errors.  Connection failures and timeouts raise
    :class:`NetworkUnavailableError` / :class:`RequestTimeoutError`.
    """

    def __init__(self, config: PayAwareConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(self, token: str | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if token:
            headers["authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        token: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""
        url = f"{self._config.base_url}{endpoint}"
        data = json.dumps(dict(json_body)) if json_body is not None else None

        _logger.debug(
            "%s %s token=%s body=%s",
            method,
            url,
            redact_token(token),
            redact_for_log(json_body),
        )

        try:
            async with self._http.request(
                method,
                url,
                data=data,
                headers=self._build_headers(token),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except TimeoutError as exc:
            raise RequestTimeoutError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise NetworkUnavailableError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        body: Any = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                if 200 <= status < 300:
                    raise TransportError(
                        f"Invalid JSON from {endpoint}: {text[:200]}",
                        status_code=status,
                        endpoint=endpoint,
                    ) from exc
                body = text

        if not 200 <= status < 300:
            raise TransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
                payload=body,
            )

        _logger.debug("%s %s -> %s", method, endpoint, status)
        return body
