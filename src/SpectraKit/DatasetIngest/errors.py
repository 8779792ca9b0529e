"""Exception hierarchy shared across dataset validation, retrieval, and parsing.

Dataset ingestion spans URL/MIME validation, streamed HTTP retrieval, and
heuristic parsing of loosely structured tables.  This module groups the
failure modes into a small closed hierarchy so the orchestration layer can
fold any of them into a :class:`~SpectraKit.DatasetIngest.types.FetchResult`
while callers that use the parser directly can still catch specific
subclasses.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "FetchErrorKind",
    "ParseErrorKind",
    "DatasetIngestError",
    "ValidationError",
    "NetworkError",
    "ContentTypeMismatch",
    "SizeExceeded",
    "ParseError",
    "EmptyDataset",
    "InsufficientColumns",
    "NoValidData",
    "Cancelled",
]


class FetchErrorKind(str, Enum):
    """Closed set of failure categories reported by ``fetch_dataset``."""

    VALIDATION = "validation"
    NETWORK = "network"
    CONTENT_TYPE_MISMATCH = "content_type_mismatch"
    SIZE_EXCEEDED = "size_exceeded"
    PARSE = "parse"
    CANCELLED = "cancelled"


class ParseErrorKind(str, Enum):
    """Parser failure categories."""

    EMPTY_DATASET = "empty_dataset"
    INSUFFICIENT_COLUMNS = "insufficient_columns"
    NO_VALID_DATA = "no_valid_data"


class DatasetIngestError(RuntimeError):
    """Base exception for dataset validation, retrieval, or parsing failures."""

    kind: FetchErrorKind = FetchErrorKind.NETWORK


class ValidationError(DatasetIngestError):
    """Raised before any network call when the URL or declared MIME is refused."""

    kind = FetchErrorKind.VALIDATION


class NetworkError(DatasetIngestError):
    """Raised on transport failures or non-success HTTP statuses."""

    kind = FetchErrorKind.NETWORK

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContentTypeMismatch(DatasetIngestError):
    """Raised when the server reports a Content-Type outside the allowlist."""

    kind = FetchErrorKind.CONTENT_TYPE_MISMATCH

    def __init__(self, message: str, *, content_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.content_type = content_type


class SizeExceeded(DatasetIngestError):
    """Raised when the payload is larger than the configured maximum.

    ``observed`` holds the Content-Length for pre-flight failures and the
    running byte count for mid-stream failures.
    """

    kind = FetchErrorKind.SIZE_EXCEEDED

    def __init__(self, message: str, *, limit: int, observed: Optional[int] = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.observed = observed


class ParseError(DatasetIngestError):
    """Base class for tabular parse failures."""

    kind = FetchErrorKind.PARSE
    parse_kind: ParseErrorKind


class EmptyDataset(ParseError):
    """Raised when no non-blank rows remain after splitting."""

    parse_kind = ParseErrorKind.EMPTY_DATASET

    def __init__(self, message: str = "Dataset is empty") -> None:
        super().__init__(message)


class InsufficientColumns(ParseError):
    """Raised when the header row has fewer than two columns."""

    parse_kind = ParseErrorKind.INSUFFICIENT_COLUMNS

    def __init__(
        self, message: str = "Dataset must contain at least two columns (X and Y)"
    ) -> None:
        super().__init__(message)


class NoValidData(ParseError):
    """Raised when every data row was discarded during extraction."""

    parse_kind = ParseErrorKind.NO_VALID_DATA

    def __init__(self, message: str = "No valid numeric data points found in dataset") -> None:
        super().__init__(message)


class Cancelled(DatasetIngestError):
    """Raised when an in-flight fetch is cancelled through its token."""

    kind = FetchErrorKind.CANCELLED

    def __init__(self, message: str = "Request aborted") -> None:
        super().__init__(message)
