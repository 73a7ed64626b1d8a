"""Pending deep-link holder.

Links arrive at launch ("initial URL") or while the app runs.  At most
one link is pending at a time; a newer link replaces an older one that
was not consumed yet.
"""

from __future__ import annotations

import logging
from typing import Protocol

from payaware.models.deep_link import DeepLink, parse_deep_link

_logger = logging.getLogger(__name__)


class DeepLinkSource(Protocol):
    def push(self, url: str) -> DeepLink:
        ...

    def peek(self) -> DeepLink | None:
        ...

    def consume(self, link: DeepLink) -> None:
        ...


class PendingDeepLinkQueue:
    """In-memory :class:`DeepLinkSource` fed by the platform URL handlers."""

    def __init__(self, initial_url: str | None = None) -> None:
        self._pending: DeepLink | None = None
        if initial_url:
            self.push(initial_url)

    def push(self, url: str) -> DeepLink:
        link = parse_deep_link(url)
        if self._pending is not None:
            _logger.debug("Replacing unconsumed deep link path=%s", self._pending.path)
        self._pending = link
        _logger.debug("Deep link queued path=%s params=%s", link.path, sorted(link.params))
        return link

    def peek(self) -> DeepLink | None:
        return self._pending

    def consume(self, link: DeepLink) -> None:
        """Drop *link* if it is still the pending one.

        A link pushed after *link* was read stays queued.
        """
        if self._pending is link:
            self._pending = None
