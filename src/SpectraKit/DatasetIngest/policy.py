# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.policy",
#   "purpose": "Ingestion policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""Ingestion policy constants and defaults.

Defines the MIME allowlist, payload and point budgets, cache lifetimes, and
the header heuristics shared by the detector, parser, fetcher, and cache.
Settings in :mod:`SpectraKit.DatasetIngest.settings` default to these values.
"""

from __future__ import annotations

import re

# ============================================================================
# MIME Allowlist
# ============================================================================

#: Declared and response MIME types accepted for datasets (parameters stripped)
ALLOWED_MIME_TYPES = (
    "text/csv",
    "text/plain",
    "text/tab-separated-values",
)

#: MIME type that forces tab delimiting, bypassing delimiter detection
TSV_MIME_TYPE = "text/tab-separated-values"

#: URL schemes the fetcher is allowed to contact
ALLOWED_URL_SCHEMES = frozenset({"http", "https"})


# ============================================================================
# Size & Point Budgets
# ============================================================================

#: Maximum payload size in bytes (5 MiB), enforced pre-flight and mid-stream
MAX_DATASET_SIZE = 5 * 1024 * 1024

#: Maximum number of points per series after downsampling
MAX_DATA_POINTS = 10_000

#: Chunk size used when streaming response bodies
STREAM_CHUNK_SIZE = 64 * 1024


# ============================================================================
# Cache Lifetimes
# ============================================================================

#: Time-to-live of a parsed dataset in the cache (30 minutes)
CACHE_TTL_SECONDS = 30 * 60.0

#: Interval between periodic sweeps of expired cache entries (5 minutes)
CACHE_SWEEP_INTERVAL_SECONDS = 5 * 60.0


# ============================================================================
# Parsing Heuristics
# ============================================================================

#: Number of leading rows examined for header/metadata lines
HEADER_SCAN_LIMIT = 5

#: Ordered X-axis header patterns; first match wins
X_COLUMN_PATTERNS = (
    re.compile(r"^x$", re.IGNORECASE),
    re.compile(r"^wavelength", re.IGNORECASE),
    re.compile(r"^wavenumber", re.IGNORECASE),
    re.compile(r"^energy", re.IGNORECASE),
    re.compile(r"^frequency", re.IGNORECASE),
    re.compile(r"^channel", re.IGNORECASE),
    re.compile(r"^position", re.IGNORECASE),
    re.compile(r"^time", re.IGNORECASE),
    re.compile(r"^index", re.IGNORECASE),
    re.compile(r"^nm$", re.IGNORECASE),
    re.compile(r"^ev$", re.IGNORECASE),
    re.compile(r"^kev$", re.IGNORECASE),
)


__all__ = [
    # MIME
    "ALLOWED_MIME_TYPES",
    "TSV_MIME_TYPE",
    "ALLOWED_URL_SCHEMES",
    # Budgets
    "MAX_DATASET_SIZE",
    "MAX_DATA_POINTS",
    "STREAM_CHUNK_SIZE",
    # Cache
    "CACHE_TTL_SECONDS",
    "CACHE_SWEEP_INTERVAL_SECONDS",
    # Parsing
    "HEADER_SCAN_LIMIT",
    "X_COLUMN_PATTERNS",
]
