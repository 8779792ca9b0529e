# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.cache",
#   "purpose": "TTL store for parsed spectra plus in-flight request coalescing",
#   "sections": [
#     {"id": "datasetcache", "name": "DatasetCache", "anchor": "class-datasetcache", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""TTL store for parsed spectra plus in-flight request coalescing.

:class:`DatasetCache` keeps two maps keyed by URL:

* completed spectra wrapped in :class:`~SpectraKit.DatasetIngest.types.CacheEntry`
  records, evicted lazily on :meth:`DatasetCache.get`, by :meth:`cleanup`, or
  by the optional periodic sweeper task;
* pending ``asyncio`` futures for fetches still running, each of which
  unregisters itself through a done-callback however it settles.

All mutation happens on the event loop thread between awaits, so the cache
holds no locks.  The clock is injectable so expiry can be tested without
sleeping.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Callable, Dict, Optional

from .policy import CACHE_SWEEP_INTERVAL_SECONDS, CACHE_TTL_SECONDS
from .types import CacheEntry, CacheStats, ParsedSpectrum

__all__ = ["DatasetCache"]

logger = logging.getLogger(__name__)


class DatasetCache:
    """In-memory spectrum cache with time-based expiry.

    Args:
        ttl_seconds: Lifetime of an entry after :meth:`set`.
        clock: Monotonic time source in seconds.

    Examples:
        >>> cache = DatasetCache(ttl_seconds=60)
        >>> cache.get("https://example.org/a.csv") is None
        True
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._pending: Dict[str, "asyncio.Future[ParsedSpectrum]"] = {}
        self._sweeper: Optional["asyncio.Task[None]"] = None

    # ------------------------------------------------------------------
    # Completed entries
    # ------------------------------------------------------------------

    def get(self, url: str) -> Optional[ParsedSpectrum]:
        """Return the cached spectrum, evicting it first if it has expired."""

        entry = self._entries.get(url)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[url]
            return None
        return entry.data

    def set(self, url: str, data: ParsedSpectrum) -> None:
        now = self._clock()
        self._entries[url] = CacheEntry(
            data=data, created_at=now, expires_at=now + self.ttl_seconds
        )

    def has(self, url: str) -> bool:
        """Return ``True`` when an entry exists, expired or not."""

        return url in self._entries

    def delete(self, url: str) -> bool:
        return self._entries.pop(url, None) is not None

    def clear(self) -> None:
        """Drop every entry and forget all pending registrations.

        Pending fetches keep running; their completion callbacks find nothing
        to remove.
        """

        self._entries.clear()
        self._pending.clear()

    def cleanup(self) -> int:
        """Remove every expired entry and return how many were removed."""

        now = self._clock()
        expired = [url for url, entry in self._entries.items() if entry.is_expired(now)]
        for url in expired:
            del self._entries[url]
        return len(expired)

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), pending_count=len(self._pending))

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Pending requests
    # ------------------------------------------------------------------

    def get_pending_request(self, url: str) -> Optional["asyncio.Future[ParsedSpectrum]"]:
        return self._pending.get(url)

    def set_pending_request(self, url: str, future: "asyncio.Future[ParsedSpectrum]") -> None:
        """Register ``future`` as the in-flight fetch of ``url``.

        The registration removes itself once ``future`` settles, whether it
        succeeds, fails, or is cancelled.  A later registration for the same
        URL is left untouched.
        """

        self._pending[url] = future

        def _release(done: "asyncio.Future[ParsedSpectrum]") -> None:
            if self._pending.get(url) is done:
                del self._pending[url]

        future.add_done_callback(_release)

    # ------------------------------------------------------------------
    # Periodic sweep
    # ------------------------------------------------------------------

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self, interval_seconds: float = CACHE_SWEEP_INTERVAL_SECONDS) -> None:
        """Run :meth:`cleanup` every ``interval_seconds`` on the running loop."""

        if self.sweeper_running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_forever(interval_seconds), name="dataset-cache-sweeper"
        )

    async def stop_sweeper(self) -> None:
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    async def _sweep_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = self.cleanup()
            logger.debug(
                "dataset cache sweep",
                extra={"stage": "cache", "removed": removed, "remaining": len(self._entries)},
            )
