# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.fetcher",
#   "purpose": "Bounded, cancellable streaming retrieval of remote dataset text",
#   "sections": [
#     {"id": "helpers", "name": "Header Helpers", "anchor": "HLP", "kind": "helpers"},
#     {"id": "securefetcher", "name": "SecureFetcher", "anchor": "class-securefetcher", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Bounded, cancellable streaming retrieval of remote dataset text.

:class:`SecureFetcher` performs one guarded GET per call:

1. Refuse non-http(s) URLs and unsupported declared MIME types before any
   network activity (:class:`ValidationError`).
2. Send no credentials: embedded userinfo is stripped and the client
   refuses cookies.
3. Map non-2xx statuses to :class:`NetworkError` carrying the status code.
4. Reject an oversized ``Content-Length`` before reading the body.
5. Reject a server ``Content-Type`` outside the allowlist.
6. Stream the body chunk by chunk with a running byte total so absent or
   wrong length headers cannot bypass the cap, polling the cancellation token
   at every chunk.
7. Decode incrementally as UTF-8 so multi-byte sequences split across chunk
   boundaries survive, stripping a leading byte-order mark.

Request coalescing and caching live one layer up in
:class:`~SpectraKit.DatasetIngest.session.DatasetSession`; the fetcher only
owns the per-URL :class:`CancellationRegistry`.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from typing import List, Optional, Tuple

import httpx

from .cancellation import CancellationRegistry, CancellationToken
from .errors import Cancelled, ContentTypeMismatch, NetworkError, SizeExceeded
from .logging_utils import redact_url
from .policy import MAX_DATASET_SIZE, STREAM_CHUNK_SIZE
from .types import RawContent
from .validators import base_mime_type, ensure_fetchable, is_allowed_mime, strip_userinfo

__all__ = ["SecureFetcher"]

logger = logging.getLogger(__name__)


# ============================================================================
# Header Helpers
# ============================================================================


def _content_length(response: httpx.Response) -> Optional[int]:
    length_header = response.headers.get("Content-Length")
    if not length_header:
        return None
    try:
        return int(length_header)
    except (TypeError, ValueError):
        return None


def _http_error_message(response: httpx.Response) -> str:
    return f"HTTP {response.status_code}: {response.reason_phrase}"


# ============================================================================
# SecureFetcher
# ============================================================================


class SecureFetcher:
    """Guarded dataset downloader bound to one ``httpx.AsyncClient``.

    Args:
        client: Client used for every request; the fetcher never closes it.
        max_bytes: Payload cap enforced before and during streaming.
        chunk_size: Chunk size requested from ``aiter_bytes``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_bytes: int = MAX_DATASET_SIZE,
        chunk_size: int = STREAM_CHUNK_SIZE,
    ) -> None:
        self.client = client
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size
        self.registry = CancellationRegistry()

    async def fetch(
        self,
        url: str,
        declared_mime: str,
        token: Optional[CancellationToken] = None,
    ) -> RawContent:
        """Download ``url`` and return its decoded text.

        Args:
            url: Absolute http(s) URL of the dataset.
            declared_mime: MIME type the caller expects.
            token: Optional cancellation token polled before the request and
                at every chunk.

        Returns:
            :class:`RawContent` with the server's base MIME type when it sent
            one, otherwise the declared type.

        Raises:
            ValidationError: URL or declared MIME refused.
            NetworkError: Transport failure or non-success status.
            SizeExceeded: Payload larger than ``max_bytes``.
            ContentTypeMismatch: Server Content-Type outside the allowlist.
            Cancelled: ``token`` was cancelled.
        """

        ensure_fetchable(url, declared_mime)
        if token is not None:
            token.raise_if_cancelled()

        safe_url = redact_url(url)
        logger.info("dataset fetch started", extra={"stage": "fetch", "url": safe_url})
        try:
            async with self.client.stream("GET", strip_userinfo(url)) as response:
                if not response.is_success:
                    raise NetworkError(
                        _http_error_message(response), status_code=response.status_code
                    )

                declared_length = _content_length(response)
                if declared_length is not None and declared_length > self.max_bytes:
                    raise SizeExceeded(
                        f"Dataset too large: {declared_length} bytes (max: {self.max_bytes})",
                        limit=self.max_bytes,
                        observed=declared_length,
                    )

                server_type = response.headers.get("Content-Type")
                if server_type and not is_allowed_mime(server_type):
                    raise ContentTypeMismatch(
                        f"Server returned invalid Content-Type: {server_type}",
                        content_type=server_type,
                    )
                effective_mime = base_mime_type(server_type) or base_mime_type(declared_mime)

                text, received = await self._read_text(response, token)
        except asyncio.CancelledError:
            if token is not None and token.is_cancelled():
                raise Cancelled() from None
            raise
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Network error: {exc}") from exc

        logger.info(
            "dataset fetch completed",
            extra={
                "stage": "fetch",
                "url": safe_url,
                "bytes": received,
                "mime_type": effective_mime,
            },
        )
        return RawContent(text=text, mime_type=effective_mime)

    async def _read_text(
        self,
        response: httpx.Response,
        token: Optional[CancellationToken],
    ) -> Tuple[str, int]:
        decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="replace")
        parts: List[str] = []
        received = 0
        async for chunk in response.aiter_bytes(self.chunk_size):
            if token is not None:
                token.raise_if_cancelled()
            if not chunk:
                continue
            received += len(chunk)
            if received > self.max_bytes:
                raise SizeExceeded(
                    f"Dataset exceeds maximum size of {self.max_bytes} bytes",
                    limit=self.max_bytes,
                    observed=received,
                )
            parts.append(decoder.decode(chunk))
        parts.append(decoder.decode(b"", final=True))
        return "".join(parts), received

    def cancel(self, url: str) -> bool:
        """Cancel the in-flight fetch of ``url``; ``False`` when none is running."""

        return self.registry.cancel(url)

    def cancel_all(self) -> int:
        return self.registry.cancel_all()
