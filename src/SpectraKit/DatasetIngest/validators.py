"""URL and MIME checks applied before any dataset is requested.

All helpers are pure: they never perform I/O and never raise for malformed
input, except :func:`ensure_fetchable` which converts a refusal into a
:class:`~SpectraKit.DatasetIngest.errors.ValidationError` for the fetcher.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from .errors import ValidationError
from .policy import ALLOWED_MIME_TYPES, ALLOWED_URL_SCHEMES
from .types import UrlValidation

__all__ = [
    "INVALID_URL_MESSAGE",
    "base_mime_type",
    "is_allowed_url",
    "is_allowed_mime",
    "strip_userinfo",
    "unsupported_mime_message",
    "validate_dataset_url",
    "ensure_fetchable",
]

INVALID_URL_MESSAGE = "Invalid URL: Only http/https protocols are allowed"


def base_mime_type(mime: Optional[str]) -> str:
    """Return ``mime`` without parameters, trimmed and lowercased.

    Examples:
        >>> base_mime_type("Text/CSV; charset=utf-8")
        'text/csv'
    """

    if not mime:
        return ""
    return mime.split(";", 1)[0].strip().lower()


def is_allowed_url(url: object) -> bool:
    """Return ``True`` only for well-formed ``http``/``https`` URLs."""

    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlsplit(url.strip())
        # Accessing hostname validates bracketed IPv6 literals.
        hostname = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_URL_SCHEMES and bool(hostname)


def is_allowed_mime(mime: Optional[str]) -> bool:
    """Return ``True`` when the base MIME type is on the dataset allowlist."""

    return base_mime_type(mime) in ALLOWED_MIME_TYPES


def strip_userinfo(url: str) -> str:
    """Return ``url`` with any ``user:password@`` prefix removed from the authority.

    Requests are always issued without credentials, so embedded userinfo must
    never reach the HTTP client (which would turn it into Basic auth).

    Examples:
        >>> strip_userinfo("https://user:pw@example.org:8443/a.csv?v=1")
        'https://example.org:8443/a.csv?v=1'
    """

    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rpartition("@")[2]
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


def unsupported_mime_message(mime: Optional[str]) -> str:
    return f"Unsupported MIME type: {mime}. Allowed: {', '.join(ALLOWED_MIME_TYPES)}"


def validate_dataset_url(url: str, mime_type: Optional[str]) -> UrlValidation:
    """Pre-validate a dataset reference without contacting the network."""

    if not is_allowed_url(url):
        return UrlValidation(valid=False, error=INVALID_URL_MESSAGE)
    if not is_allowed_mime(mime_type):
        return UrlValidation(valid=False, error=unsupported_mime_message(mime_type))
    return UrlValidation(valid=True)


def ensure_fetchable(url: str, mime_type: Optional[str]) -> None:
    """Raise :class:`ValidationError` when ``url``/``mime_type`` are refused."""

    verdict = validate_dataset_url(url, mime_type)
    if not verdict.valid:
        raise ValidationError(verdict.error or INVALID_URL_MESSAGE)
