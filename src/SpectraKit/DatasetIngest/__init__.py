# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest",
#   "purpose": "Package initialization for SpectraKit.DatasetIngest",
#   "sections": [
#     {
#       "id": "getattr",
#       "name": "__getattr__",
#       "anchor": "function-getattr",
#       "kind": "function"
#     },
#     {
#       "id": "dir",
#       "name": "__dir__",
#       "anchor": "function-dir",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public API for SpectraKit dataset ingestion.

This facade exposes the pieces external callers use to fetch remotely hosted
tabular spectra through a :class:`DatasetSession`, parse local text with
:func:`parse_dataset`, and pre-validate dataset references.  Attributes are
imported lazily so that importing the package does not pull in HTTPX or
NumPy until they are needed.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__version__ = "0.1.0"

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "DatasetSession": (".session", "DatasetSession"),
    "DatasetCache": (".cache", "DatasetCache"),
    "SecureFetcher": (".fetcher", "SecureFetcher"),
    "CancellationToken": (".cancellation", "CancellationToken"),
    "parse_dataset": (".parser", "parse_dataset"),
    "try_parse_dataset": (".parser", "try_parse_dataset"),
    "downsample": (".downsample", "downsample"),
    "lttb_indices": (".downsample", "lttb_indices"),
    "detect_delimiter": (".detection", "detect_delimiter"),
    "is_allowed_url": (".validators", "is_allowed_url"),
    "is_allowed_mime": (".validators", "is_allowed_mime"),
    "validate_dataset_url": (".validators", "validate_dataset_url"),
    "ParsedSpectrum": (".types", "ParsedSpectrum"),
    "SeriesData": (".types", "SeriesData"),
    "FetchResult": (".types", "FetchResult"),
    "RawContent": (".types", "RawContent"),
    "DatasetIngestError": (".errors", "DatasetIngestError"),
    "FetchErrorKind": (".errors", "FetchErrorKind"),
    "ParseError": (".errors", "ParseError"),
    "IngestSettings": (".settings", "IngestSettings"),
    "get_settings": (".settings", "get_settings"),
    "setup_logging": (".logging_utils", "setup_logging"),
}

__all__ = [*_EXPORTS, "__version__"]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .cache import DatasetCache
    from .cancellation import CancellationToken
    from .detection import detect_delimiter
    from .downsample import downsample, lttb_indices
    from .errors import DatasetIngestError, FetchErrorKind, ParseError
    from .fetcher import SecureFetcher
    from .logging_utils import setup_logging
    from .parser import parse_dataset, try_parse_dataset
    from .session import DatasetSession
    from .settings import IngestSettings, get_settings
    from .types import FetchResult, ParsedSpectrum, RawContent, SeriesData
    from .validators import is_allowed_mime, is_allowed_url, validate_dataset_url


def __getattr__(name: str) -> Any:
    """Lazily import public exports on first access."""

    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module_name, attribute = target
    value = getattr(import_module(module_name, __name__), attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted({*globals(), *_EXPORTS})
