"""Cooperative cancellation primitives for in-flight dataset fetches.

Each URL being fetched owns one :class:`CancellationToken`, held by the
fetcher's :class:`CancellationRegistry`.  The fetcher polls the token before
issuing the request and between stream chunks; callbacks registered on the
token (typically ``asyncio.Task.cancel`` of the shared fetch task) interrupt a
read that is blocked waiting for the network.  Everything here runs on the
event loop thread, so no locking is involved.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .errors import Cancelled
from .logging_utils import redact_url

__all__ = ["CancellationToken", "CancellationRegistry"]

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cancellation flag with one-shot callbacks.

    Examples:
        >>> token = CancellationToken("https://example.org/data.csv")
        >>> token.is_cancelled()
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url
        self._cancelled = False
        self._callbacks: List[Callable[[], object]] = []

    def cancel(self) -> None:
        """Request cancellation and run registered callbacks once."""

        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def is_cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], object]) -> None:
        """Run ``callback`` on cancellation, immediately if already cancelled."""

        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        """Raise :class:`Cancelled` when cancellation has been requested."""

        if self._cancelled:
            raise Cancelled()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken(url={self.url!r}, {state})"


class CancellationRegistry:
    """Per-URL registry of the tokens guarding in-flight fetches."""

    def __init__(self) -> None:
        self._tokens: Dict[str, CancellationToken] = {}

    def create(self, url: str) -> CancellationToken:
        """Create and register the token for a new fetch of ``url``.

        A token left behind by an earlier fetch of the same URL is replaced;
        :meth:`release` only removes the token it is given.
        """

        token = CancellationToken(url)
        self._tokens[url] = token
        return token

    def get(self, url: str) -> Optional[CancellationToken]:
        return self._tokens.get(url)

    def release(self, url: str, token: CancellationToken) -> None:
        """Drop ``token`` once its fetch has settled."""

        if self._tokens.get(url) is token:
            del self._tokens[url]

    def cancel(self, url: str) -> bool:
        """Cancel the in-flight fetch of ``url``; return ``False`` if none."""

        token = self._tokens.pop(url, None)
        if token is None:
            return False
        logger.debug(
            "cancelling dataset fetch", extra={"stage": "cancel", "url": redact_url(url)}
        )
        token.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every in-flight fetch and return how many were cancelled."""

        tokens = list(self._tokens.values())
        self._tokens.clear()
        for token in tokens:
            token.cancel()
        return len(tokens)

    def __contains__(self, url: object) -> bool:
        return url in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
