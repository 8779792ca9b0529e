# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.session",
#   "purpose": "Session object orchestrating cache, coalescing, fetch, and parse",
#   "sections": [
#     {"id": "datasetsession", "name": "DatasetSession", "anchor": "class-datasetsession", "kind": "class"},
#     {"id": "lifecycle", "name": "Lifecycle", "anchor": "LIFE", "kind": "api"},
#     {"id": "fetch", "name": "fetch_dataset", "anchor": "FETCH", "kind": "api"},
#     {"id": "control", "name": "Cancellation & Invalidation", "anchor": "CTRL", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Session object orchestrating cache, coalescing, fetch, and parse.

A :class:`DatasetSession` is the explicit context owned by the calling
application.  It holds the HTTP client, the :class:`SecureFetcher` with its
cancellation registry, and the :class:`DatasetCache`, and exposes the call
surface used by rendering collaborators::

    async with DatasetSession() as session:
        result = await session.fetch_dataset(url, "text/csv", "Sample A")
        if result.ok:
            plot(result.data)

``fetch_dataset`` never raises for expected failures: validation, network,
content-type, size, parse, and cancellation problems all come back as a
:class:`~SpectraKit.DatasetIngest.types.FetchResult` with ``status="error"``.
Concurrent calls for the same URL share one ``asyncio.Task`` (one network
request, one parse) and observe the same outcome.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Optional, Set

import httpx

from .cache import DatasetCache
from .cancellation import CancellationToken
from .client import create_http_client
from .errors import Cancelled, DatasetIngestError, ValidationError
from .fetcher import SecureFetcher
from .logging_utils import redact_url
from .parser import parse_dataset as _parse_dataset
from .settings import IngestSettings
from .types import FetchResult, ParsedSpectrum, UrlValidation
from .validators import validate_dataset_url as _validate_dataset_url

__all__ = ["DatasetSession"]

logger = logging.getLogger(__name__)


class DatasetSession:
    """Explicit context for dataset ingestion.

    Args:
        settings: Configuration; defaults are used when omitted.
        client: Pre-built ``httpx.AsyncClient``.  The session does not close a
            client it did not create.
        transport: Transport for the client the session creates itself
            (ignored when ``client`` is given).
        cache: Pre-built cache, e.g. one with an injected clock.
    """

    def __init__(
        self,
        settings: Optional[IngestSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[DatasetCache] = None,
    ) -> None:
        self.settings = settings if settings is not None else IngestSettings()
        self._owns_client = client is None
        if client is None:
            client = create_http_client(self.settings.http, transport=transport)
        self.client = client
        self.fetcher = SecureFetcher(
            self.client,
            max_bytes=self.settings.limits.max_dataset_bytes,
            chunk_size=self.settings.limits.chunk_size,
        )
        # An empty DatasetCache is falsy (it defines __len__).
        self.cache = cache if cache is not None else DatasetCache(self.settings.cache.ttl_seconds)
        self._tasks: Set["asyncio.Task[ParsedSpectrum]"] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> "DatasetSession":
        """Start background maintenance (the periodic cache sweep)."""

        self._ensure_open()
        if self.settings.cache.sweeper_enabled:
            self.cache.start_sweeper(self.settings.cache.sweep_interval_seconds)
        return self

    async def aclose(self) -> None:
        """Cancel in-flight fetches, stop the sweeper, and release the client.

        Safe to call more than once.
        """

        if self._closed:
            return
        self._closed = True
        self.fetcher.cancel_all()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.cache.stop_sweeper()
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "DatasetSession":
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("DatasetSession is closed")

    # ------------------------------------------------------------------
    # Fetch & parse
    # ------------------------------------------------------------------

    async def fetch_dataset(self, url: str, mime_type: str, label: str) -> FetchResult:
        """Return the parsed dataset at ``url``, from cache when possible.

        Args:
            url: Absolute http(s) URL of the dataset.
            mime_type: Declared MIME type of the dataset.
            label: Display label recorded on a freshly parsed spectrum.

        Returns:
            :class:`FetchResult` describing success or the failure kind.
        """

        self._ensure_open()
        verdict = _validate_dataset_url(url, mime_type)
        if not verdict.valid:
            return FetchResult.failure(ValidationError(verdict.error or "Invalid request"))

        cached = self.cache.get(url)
        if cached is not None:
            logger.debug("dataset cache hit", extra={"stage": "cache", "url": redact_url(url)})
            return FetchResult.success(cached)

        pending = self.cache.get_pending_request(url)
        if pending is not None:
            logger.debug(
                "dataset request coalesced", extra={"stage": "cache", "url": redact_url(url)}
            )
            return await self._await_outcome(pending)

        token = self.fetcher.registry.create(url)
        task = asyncio.get_running_loop().create_task(
            self._fetch_and_parse(url, mime_type, label, token),
            name=f"dataset-fetch:{redact_url(url)}",
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, redact_url(url)))
        self.cache.set_pending_request(url, task)
        token.add_callback(task.cancel)
        return await self._await_outcome(task)

    async def _fetch_and_parse(
        self,
        url: str,
        mime_type: str,
        label: str,
        token: CancellationToken,
    ) -> ParsedSpectrum:
        try:
            raw = await self.fetcher.fetch(url, mime_type, token)
            token.raise_if_cancelled()
            spectrum = self.parse_dataset(raw.text, url, label, raw.mime_type)
            self.cache.set(url, spectrum)
            return spectrum
        finally:
            self.fetcher.registry.release(url, token)

    async def _await_outcome(self, future: "asyncio.Future[ParsedSpectrum]") -> FetchResult:
        try:
            spectrum = await asyncio.shield(future)
        except asyncio.CancelledError:
            # The shared fetch was aborted before it could report Cancelled
            # itself; a cancelled caller of this coroutine is re-raised.
            if future.cancelled():
                return FetchResult.failure(Cancelled())
            raise
        except DatasetIngestError as exc:
            return FetchResult.failure(exc)
        return FetchResult.success(spectrum)

    def _on_task_done(self, url: str, task: "asyncio.Task[ParsedSpectrum]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("dataset fetch cancelled", extra={"stage": "fetch", "url": url})
            return
        exc = task.exception()
        if isinstance(exc, Cancelled):
            logger.info("dataset fetch cancelled", extra={"stage": "fetch", "url": url})
        elif exc is not None:
            logger.warning(
                "dataset fetch failed",
                extra={
                    "stage": "fetch",
                    "url": url,
                    "error": str(exc),
                    "error_kind": getattr(getattr(exc, "kind", None), "value", None),
                },
            )

    def parse_dataset(self, text: str, id: str, label: str, mime_type: str) -> ParsedSpectrum:
        """Parse ``text`` with this session's point budget; raises parse errors."""

        return _parse_dataset(
            text, id, label, mime_type, max_points=self.settings.limits.max_points
        )

    # ------------------------------------------------------------------
    # Cancellation & invalidation
    # ------------------------------------------------------------------

    def cancel_fetch(self, url: str) -> bool:
        """Abort the in-flight fetch of ``url``; ``False`` when none is running."""

        return self.fetcher.cancel(url)

    def cancel_all_fetches(self) -> int:
        return self.fetcher.cancel_all()

    def invalidate(self, url: str) -> bool:
        """Evict ``url`` from the cache so the next fetch goes to the network."""

        return self.cache.delete(url)

    @staticmethod
    def validate_dataset_url(url: str, mime_type: Optional[str]) -> UrlValidation:
        return _validate_dataset_url(url, mime_type)
