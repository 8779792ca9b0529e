# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.settings",
#   "purpose": "Typed, environment-aware configuration for dataset ingestion",
#   "sections": [
#     {"id": "domains", "name": "Domain Models", "anchor": "DOM", "kind": "api"},
#     {"id": "root", "name": "IngestSettings", "anchor": "ROOT", "kind": "api"},
#     {"id": "cache", "name": "Settings Cache", "anchor": "CACHE", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Typed configuration for dataset ingestion.

Settings are grouped into frozen pydantic domain models (HTTP, limits, cache,
logging) composed by :class:`IngestSettings`, a ``pydantic-settings`` model
that reads ``SPECTRAKIT_*`` environment variables.  Nested fields use ``__``
as delimiter, e.g. ``SPECTRAKIT_CACHE__TTL_SECONDS=60``.

Sessions take an explicit ``IngestSettings`` instance; :func:`get_settings`
offers a process-wide default for CLIs and scripts.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .policy import (
    CACHE_SWEEP_INTERVAL_SECONDS,
    CACHE_TTL_SECONDS,
    MAX_DATA_POINTS,
    MAX_DATASET_SIZE,
    STREAM_CHUNK_SIZE,
)

__all__ = [
    "HttpSettings",
    "LimitSettings",
    "CacheSettings",
    "LoggingSettings",
    "IngestSettings",
    "get_settings",
    "clear_settings_cache",
]


# ============================================================================
# Domain Models
# ============================================================================


class HttpSettings(BaseModel):
    """HTTPX client settings.

    Controls timeouts, pooling, redirect handling, TLS verification, and the
    User-Agent header.
    """

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    timeout_connect: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Connect timeout in seconds",
    )
    timeout_read: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Read timeout in seconds",
    )
    timeout_write: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Write timeout in seconds",
    )
    timeout_pool: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Acquire-from-pool timeout in seconds",
    )
    max_connections: int = Field(
        default=20,
        ge=1,
        le=1024,
        description="Max concurrent connections",
    )
    max_keepalive_connections: int = Field(
        default=10,
        ge=0,
        le=1024,
        description="Keepalive pool size",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Follow HTTP redirects (targets are restricted to http/https by HTTPX)",
    )
    http2: bool = Field(default=False, description="Enable HTTP/2 support")
    trust_env: bool = Field(
        default=False,
        description="Honor proxy and netrc environment settings (netrc may attach credentials)",
    )
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    user_agent: str = Field(
        default="SpectraKit-DatasetIngest/0.1 (+https://github.com/spectrakit/spectrakit)",
        description="User-Agent header value",
    )


class LimitSettings(BaseModel):
    """Payload and point budgets."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    max_dataset_bytes: int = Field(
        default=MAX_DATASET_SIZE,
        ge=1,
        description="Maximum response body size in bytes",
    )
    max_points: int = Field(
        default=MAX_DATA_POINTS,
        ge=3,
        description="Maximum points per series before LTTB downsampling",
    )
    chunk_size: int = Field(
        default=STREAM_CHUNK_SIZE,
        ge=1,
        description="Stream read chunk size in bytes",
    )


class CacheSettings(BaseModel):
    """In-memory dataset cache settings."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    ttl_seconds: float = Field(
        default=CACHE_TTL_SECONDS,
        gt=0.0,
        description="Lifetime of a cached dataset",
    )
    sweep_interval_seconds: float = Field(
        default=CACHE_SWEEP_INTERVAL_SECONDS,
        gt=0.0,
        description="Interval between periodic sweeps of expired entries",
    )
    sweeper_enabled: bool = Field(
        default=True,
        description="Run the periodic sweeper while a session is open",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    emit_json_logs: bool = Field(
        default=False,
        description="Emit JSON-formatted console logs",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for rotating JSONL log files (disabled when unset)",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    @field_validator("log_dir", mode="before")
    @classmethod
    def normalize_log_dir(cls, v: Any) -> Optional[Path]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v).expanduser()

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return getattr(logging, self.level)


# ============================================================================
# Root Settings
# ============================================================================


class IngestSettings(BaseSettings):
    """Root settings model for dataset ingestion."""

    model_config = SettingsConfigDict(
        env_prefix="SPECTRAKIT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    http: HttpSettings = Field(default_factory=HttpSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def config_hash(self) -> str:
        """Compute a deterministic hash of the configuration for provenance."""
        payload = json.dumps(self.model_dump(mode="json"), sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


# ============================================================================
# Settings Cache
# ============================================================================

_SETTINGS: Optional[IngestSettings] = None
_SETTINGS_LOCK = threading.Lock()


def get_settings() -> IngestSettings:
    """Return the process-wide settings, loading them from the environment once."""

    global _SETTINGS  # noqa: PLW0603
    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            _SETTINGS = IngestSettings()
        return _SETTINGS


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""

    global _SETTINGS  # noqa: PLW0603
    with _SETTINGS_LOCK:
        _SETTINGS = None
