"""Structured logging helpers shared across dataset ingestion components."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import platformdirs

__all__ = [
    "LOGGER_NAME",
    "JSONFormatter",
    "default_log_dir",
    "mask_sensitive_data",
    "redact_url",
    "setup_logging",
]

LOGGER_NAME = "SpectraKit.DatasetIngest"

_SENSITIVE_KEYS = {"authorization", "api_key", "apikey", "token", "secret", "password"}
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9+/=_-]{32,}$")
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def redact_url(url: str) -> str:
    """Return ``url`` without credentials, query string, or fragment.

    Examples:
        >>> redact_url("https://user:pw@example.org/a.csv?key=1")
        'https://example.org/a.csv'
    """

    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        port = parts.port
    except ValueError:
        return "<invalid url>"
    if not parts.scheme or not host:
        return url.split("?", 1)[0].split("#", 1)[0]
    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with common secret fields masked."""

    def _mask_value(value: object, key_hint: Optional[str] = None) -> object:
        if isinstance(value, dict):
            return {
                sub_key: _mask_value(sub_value, str(sub_key).lower())
                for sub_key, sub_value in value.items()
            }
        if isinstance(value, list):
            return [_mask_value(item, key_hint) for item in value]
        if isinstance(value, tuple):
            return tuple(_mask_value(item, key_hint) for item in value)
        if isinstance(value, str):
            lowered = value.lower()
            if key_hint in _SENSITIVE_KEYS:
                return "***masked***"
            if key_hint == "authorization" and _TOKEN_PATTERN.match(value.strip()):
                return "***masked***"
            if "bearer " in lowered or "apikey" in lowered:
                return "***masked***"
        return value

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if lower in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = _mask_value(value, lower)
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries for dataset ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string including its ``extra`` fields."""

        now = datetime.now(timezone.utc)
        payload: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stage": getattr(record, "stage", None),
        }
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key in payload or key.startswith("_"):
                continue
            payload[key] = value
        if isinstance(payload.get("url"), str):
            payload["url"] = redact_url(payload["url"])  # type: ignore[arg-type]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def default_log_dir() -> Path:
    """Return the per-user log directory used when file logging is requested."""

    return Path(platformdirs.user_log_dir("spectrakit"))


def setup_logging(
    *,
    level: str = "INFO",
    emit_json: bool = False,
    log_dir: Optional[Path] = None,
    log_to_file: bool = False,
    max_log_size_mb: int = 20,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ingestion logger with console output and optional JSONL files.

    Console output goes to ``stderr`` so command output on ``stdout`` stays
    machine-readable.  A rotating JSONL file handler is attached when
    ``log_dir`` is given or ``log_to_file`` is set (the latter falling back to
    :func:`default_log_dir`).  Handlers installed by an earlier call are
    replaced, so repeated calls are safe.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_spectrakit_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler):
                stream = getattr(handler, "stream", None)
                if stream in (sys.stdout, sys.stderr):
                    continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    if emit_json:
        stream_handler.setFormatter(JSONFormatter())
    else:
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._spectrakit_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    resolved_dir = log_dir if log_dir is not None else (default_log_dir() if log_to_file else None)
    if resolved_dir is not None:
        resolved_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            resolved_dir / f"spectrakit-ingest-{today}.jsonl",
            maxBytes=int(max_log_size_mb * 1024 * 1024),
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._spectrakit_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
