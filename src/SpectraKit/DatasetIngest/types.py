# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.types",
#   "purpose": "Immutable data models exchanged between fetcher, parser, cache, and callers",
#   "sections": [
#     {"id": "payload", "name": "Raw Payload", "anchor": "RAW", "kind": "api"},
#     {"id": "spectrum", "name": "Parsed Spectrum", "anchor": "SPC", "kind": "api"},
#     {"id": "cache", "name": "Cache Records", "anchor": "CCH", "kind": "api"},
#     {"id": "results", "name": "Fetch Results", "anchor": "RES", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Immutable data models exchanged by the dataset ingestion pipeline.

The fetcher produces :class:`RawContent`, the parser turns it into a
:class:`ParsedSpectrum`, the cache wraps spectra in :class:`CacheEntry`
records, and the session reports outcomes to callers as :class:`FetchResult`
values.  Every model is a frozen dataclass; sequences are stored as tuples so
a spectrum handed to one caller cannot be mutated under another.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from .errors import DatasetIngestError, FetchErrorKind

__all__ = [
    "RawContent",
    "DataPoint",
    "SeriesData",
    "ParsedSpectrum",
    "CacheEntry",
    "CacheStats",
    "FetchStatus",
    "FetchResult",
    "UrlValidation",
]


# ============================================================================
# Raw Payload
# ============================================================================


@dataclass(frozen=True)
class RawContent:
    """Decoded response body handed from the fetcher to the parser.

    Attributes:
        text: UTF-8 decoded payload.
        mime_type: Effective base MIME type (server value preferred over the
            caller's declared value).
    """

    text: str
    mime_type: str


# ============================================================================
# Parsed Spectrum
# ============================================================================


def _json_numbers(values: Iterable[float]) -> List[Optional[float]]:
    """Return ``values`` as a list with non-finite entries replaced by ``None``."""

    return [value if math.isfinite(value) else None for value in values]


@dataclass(frozen=True)
class DataPoint:
    """Single (x, y) pair of the legacy single-series view."""

    x: float
    y: float


@dataclass(frozen=True)
class SeriesData:
    """One named Y sequence sharing the spectrum's X axis.

    Attributes:
        label: Header text of the source column.
        y_values: Values aligned positionally with ``ParsedSpectrum.x_values``;
            invalid cells are kept as ``nan`` placeholders.
    """

    label: str
    y_values: Tuple[float, ...]


@dataclass(frozen=True)
class ParsedSpectrum:
    """Normalized multi-series numeric model ready for plotting.

    Attributes:
        id: Dataset identifier, usually the source URL.
        label: Display label supplied by the caller.
        x_values: Shared X axis sorted in non-decreasing order.
        x_label: Header text of the X column.
        series: One entry per Y column, in original left-to-right order.
        mime_type: MIME type the payload was parsed as.
    """

    id: str
    label: str
    x_values: Tuple[float, ...]
    x_label: str
    series: Tuple[SeriesData, ...]
    mime_type: str

    def __post_init__(self) -> None:
        if not self.series:
            raise ValueError("ParsedSpectrum requires at least one series")
        for entry in self.series:
            if len(entry.y_values) != len(self.x_values):
                raise ValueError(
                    f"series '{entry.label}' has {len(entry.y_values)} values "
                    f"but the X axis has {len(self.x_values)}"
                )

    def __len__(self) -> int:
        return len(self.x_values)

    @property
    def y_label(self) -> str:
        """Label of the first series (single-series consumers)."""

        return self.series[0].label

    @property
    def points(self) -> Tuple[DataPoint, ...]:
        """X/Y pairs of the first series (single-series consumers)."""

        return tuple(
            DataPoint(x=x, y=y) for x, y in zip(self.x_values, self.series[0].y_values)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly mapping using the collaborator field names.

        ``nan`` placeholders become ``None`` so the mapping serialises to
        strict JSON (``null``).
        """

        return {
            "id": self.id,
            "label": self.label,
            "xValues": _json_numbers(self.x_values),
            "xLabel": self.x_label,
            "series": [
                {"label": entry.label, "yValues": _json_numbers(entry.y_values)}
                for entry in self.series
            ],
            "mimeType": self.mime_type,
        }


# ============================================================================
# Cache Records
# ============================================================================


@dataclass(frozen=True)
class CacheEntry:
    """Cached spectrum with creation and expiry timestamps (clock seconds)."""

    data: ParsedSpectrum
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Diagnostic counters reported by ``DatasetCache.stats``."""

    size: int
    pending_count: int


# ============================================================================
# Fetch Results
# ============================================================================

FetchStatus = Literal["success", "error"]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of ``DatasetSession.fetch_dataset``.

    Exactly one of ``data`` (on success) or ``error``/``error_kind`` (on
    failure) is populated.
    """

    status: FetchStatus
    data: Optional[ParsedSpectrum] = None
    error: Optional[str] = None
    error_kind: Optional[FetchErrorKind] = None

    @classmethod
    def success(cls, data: ParsedSpectrum) -> "FetchResult":
        return cls(status="success", data=data)

    @classmethod
    def failure(cls, exc: DatasetIngestError) -> "FetchResult":
        return cls(status="error", error=str(exc), error_kind=exc.kind)

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True)
class UrlValidation:
    """Result of pre-validating a dataset URL and MIME type without fetching."""

    valid: bool
    error: Optional[str] = None
