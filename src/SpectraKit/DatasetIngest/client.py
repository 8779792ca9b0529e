# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.client",
#   "purpose": "HTTPX async client factory for dataset retrieval",
#   "sections": [
#     {
#       "id": "create-ssl-context",
#       "name": "create_ssl_context",
#       "anchor": "function-create-ssl-context",
#       "kind": "function"
#     },
#     {
#       "id": "create-http-client",
#       "name": "create_http_client",
#       "anchor": "function-create-http-client",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""HTTPX async client factory for dataset retrieval.

Each :class:`~SpectraKit.DatasetIngest.session.DatasetSession` owns one
``httpx.AsyncClient`` built here from :class:`HttpSettings`:

- **Timeouts**: per-phase connect/read/write/pool budgets.
- **Pooling**: bounded connection and keepalive counts.
- **TLS**: certifi CA bundle with hostname checks; verification can only be
  disabled explicitly through settings.
- **Ambient credentials**: ``trust_env`` is off by default so ``.netrc``
  entries and proxy variables never attach to remote dataset requests.
- **Cookies**: the jar refuses every cookie, so a ``Set-Cookie`` from one
  dataset host is never replayed on later requests.
- **Headers**: a fixed User-Agent and an ``Accept`` header listing the
  supported MIME types.

Tests inject an ``httpx.MockTransport`` through ``transport``.
"""

from __future__ import annotations

import logging
import ssl
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Optional

import certifi
import httpx

from .policy import ALLOWED_MIME_TYPES
from .settings import HttpSettings

__all__ = ["ACCEPT_HEADER", "create_ssl_context", "create_http_client"]

logger = logging.getLogger(__name__)

ACCEPT_HEADER = ", ".join(ALLOWED_MIME_TYPES)


def _cookie_jar_refusing_all() -> CookieJar:
    """Return a cookie jar that neither stores nor sends any cookie."""

    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def create_ssl_context(settings: HttpSettings) -> ssl.SSLContext:
    """Create an SSL context with secure defaults.

    Returns:
        ``ssl.SSLContext`` trusting the certifi bundle, or an unverified
        context when ``settings.verify_tls`` is ``False``.
    """

    if not settings.verify_tls:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS verification DISABLED (development only!)")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def create_http_client(
    settings: Optional[HttpSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the ``httpx.AsyncClient`` used by a dataset session.

    Args:
        settings: HTTP settings; defaults are used when omitted.
        transport: Optional transport override (e.g. ``httpx.MockTransport``).

    Returns:
        Configured client; the caller owns it and must ``aclose()`` it.
    """

    settings = settings or HttpSettings()
    ssl_ctx = create_ssl_context(settings)

    client = httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(
            connect=settings.timeout_connect,
            read=settings.timeout_read,
            write=settings.timeout_write,
            pool=settings.timeout_pool,
        ),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
        http2=settings.http2,
        follow_redirects=settings.follow_redirects,
        trust_env=settings.trust_env,
        verify=ssl_ctx,
        cookies=_cookie_jar_refusing_all(),
        headers={"User-Agent": settings.user_agent, "Accept": ACCEPT_HEADER},
    )

    logger.debug(
        "HTTPX client created",
        extra={
            "stage": "client",
            "http2": settings.http2,
            "max_connections": settings.max_connections,
            "follow_redirects": settings.follow_redirects,
            "custom_transport": transport is not None,
        },
    )
    return client
