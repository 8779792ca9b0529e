# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.parser",
#   "purpose": "Turn delimited measurement text into a normalised multi-series spectrum",
#   "sections": [
#     {"id": "rows", "name": "Row Splitting", "anchor": "ROW", "kind": "helpers"},
#     {"id": "header", "name": "Header Detection & Column Roles", "anchor": "HDR", "kind": "helpers"},
#     {"id": "extraction", "name": "Numeric Extraction", "anchor": "EXT", "kind": "helpers"},
#     {"id": "api", "name": "parse_dataset / try_parse_dataset", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Tabular parser for remotely hosted measurement data.

The parser accepts the decoded payload of a CSV/TSV/semicolon/whitespace
table, optionally preceded by a few comment or metadata lines, and produces a
:class:`~SpectraKit.DatasetIngest.types.ParsedSpectrum`:

1. Resolve the delimiter (forced tab for the TSV MIME type, sniffed otherwise).
2. Split quoted-field aware rows and drop blank lines.
3. Classify every cell once as numeric or text.
4. Treat the last non-numeric row among the leading rows as the header.
5. Pick the X column from the header names; all other columns become series.
6. Extract finite X values, keep ``nan`` placeholders for invalid Y cells,
   drop rows without any valid Y value, and stable-sort by X.
7. Downsample oversized results with LTTB on the first series, applying the
   same index subset to every series.

:func:`parse_dataset` raises the typed errors from
:mod:`SpectraKit.DatasetIngest.errors`; :func:`try_parse_dataset` returns a
:class:`ParseOutcome` instead so callers can branch without ``try``.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .cells import Cell, NumericCell, classify_row, is_non_numeric_row
from .detection import Delimiter, resolve_delimiter
from .downsample import lttb_indices
from .errors import EmptyDataset, InsufficientColumns, NoValidData, ParseError
from .policy import HEADER_SCAN_LIMIT, MAX_DATA_POINTS, X_COLUMN_PATTERNS
from .types import ParsedSpectrum, SeriesData

__all__ = [
    "ParseOutcome",
    "split_rows",
    "find_x_column",
    "parse_dataset",
    "try_parse_dataset",
]

logger = logging.getLogger(__name__)


# ============================================================================
# Row Splitting
# ============================================================================


def split_rows(text: str, delimiter: Delimiter) -> List[List[str]]:
    """Split ``text`` into rows of raw cells, honouring quoted fields.

    Rows whose cells are all blank are dropped.
    """

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter.value, strict=False)
    return [row for row in reader if any(cell.strip() for cell in row)]


# ============================================================================
# Header Detection & Column Roles
# ============================================================================


def _locate_header(classified: Sequence[Tuple[Cell, ...]]) -> int:
    """Return the index of the header row, or ``-1`` when every row is data.

    At most :data:`HEADER_SCAN_LIMIT` leading rows are examined and the final
    row is never promoted, so at least one row is left for data.
    """

    last_header = -1
    for index in range(min(HEADER_SCAN_LIMIT, len(classified) - 1)):
        if not is_non_numeric_row(classified[index]):
            break
        last_header = index
    return last_header


def find_x_column(headers: Sequence[str]) -> int:
    """Return the X column index from header names, defaulting to ``0``.

    Patterns are tried in priority order and, for each pattern, headers from
    left to right.

    Examples:
        >>> find_x_column(["intensity", "Wavelength (nm)"])
        1
        >>> find_x_column(["a", "b"])
        0
    """

    for pattern in X_COLUMN_PATTERNS:
        for index, header in enumerate(headers):
            if pattern.search(header.strip()):
                return index
    return 0


# ============================================================================
# Numeric Extraction
# ============================================================================


def _extract_rows(
    rows: Sequence[Tuple[Cell, ...]],
    x_column: int,
    y_columns: Sequence[int],
) -> List[Tuple[float, List[float]]]:
    extracted: List[Tuple[float, List[float]]] = []
    for row in rows:
        if x_column >= len(row):
            continue
        x_cell = row[x_column]
        if not isinstance(x_cell, NumericCell):
            continue
        y_values = [row[col].as_float() if col < len(row) else math.nan for col in y_columns]
        if all(math.isnan(value) for value in y_values):
            continue
        extracted.append((x_cell.value, y_values))
    return extracted


def _as_floats(values: np.ndarray) -> Tuple[float, ...]:
    return tuple(float(value) for value in values.tolist())


# ============================================================================
# Public API
# ============================================================================


def parse_dataset(
    text: str,
    id: str,
    label: str,
    mime_type: str,
    *,
    max_points: int = MAX_DATA_POINTS,
) -> ParsedSpectrum:
    """Parse delimited ``text`` into a :class:`ParsedSpectrum`.

    Args:
        text: Decoded payload.
        id: Identifier recorded on the spectrum (usually the source URL).
        label: Display label recorded on the spectrum.
        mime_type: Effective MIME type; ``text/tab-separated-values`` forces
            tab delimiting.
        max_points: Point budget per series before LTTB downsampling applies.

    Returns:
        The populated, immutable spectrum.

    Raises:
        EmptyDataset: If no non-blank rows exist.
        InsufficientColumns: If the header row has fewer than two columns.
        NoValidData: If no row survives numeric extraction, or the text
            cannot be split (for example an unterminated quoted field).
    """

    layout = resolve_delimiter(text, mime_type)
    try:
        raw_rows = split_rows(layout.text, layout.delimiter)
    except csv.Error as exc:
        raise NoValidData(f"Malformed delimited text: {exc}") from exc
    if not raw_rows:
        raise EmptyDataset()

    classified = [classify_row(row) for row in raw_rows]
    header_index = _locate_header(classified)
    if header_index >= 0:
        headers = [cell.strip() for cell in raw_rows[header_index]]
        data_rows = classified[header_index + 1 :]
    else:
        headers = [f"Column {index + 1}" for index in range(len(raw_rows[0]))]
        data_rows = classified

    if len(headers) < 2:
        raise InsufficientColumns()

    x_column = find_x_column(headers)
    y_columns = [index for index in range(len(headers)) if index != x_column]

    logger.debug(
        "dataset structure detected",
        extra={
            "stage": "parse",
            "dataset_id": id,
            "delimiter": layout.delimiter.name,
            "space_normalized": layout.space_normalized,
            "header_row": header_index,
            "x_column": headers[x_column],
            "series_count": len(y_columns),
        },
    )

    extracted = _extract_rows(data_rows, x_column, y_columns)
    if not extracted:
        raise NoValidData()

    extracted.sort(key=lambda item: item[0])
    x_array = np.fromiter((x for x, _ in extracted), dtype=float, count=len(extracted))
    y_matrix = np.array([ys for _, ys in extracted], dtype=float).reshape(
        len(extracted), len(y_columns)
    )

    if x_array.shape[0] > max_points:
        keep = lttb_indices(x_array, y_matrix[:, 0], max_points)
        logger.info(
            "dataset downsampled",
            extra={
                "stage": "parse",
                "dataset_id": id,
                "original_points": int(x_array.shape[0]),
                "retained_points": int(keep.shape[0]),
            },
        )
        x_array = x_array[keep]
        y_matrix = y_matrix[keep, :]

    series = tuple(
        SeriesData(label=headers[column], y_values=_as_floats(y_matrix[:, position]))
        for position, column in enumerate(y_columns)
    )
    return ParsedSpectrum(
        id=id,
        label=label,
        x_values=_as_floats(x_array),
        x_label=headers[x_column],
        series=series,
        mime_type=mime_type,
    )


@dataclass(frozen=True)
class ParseOutcome:
    """Either a parsed spectrum or the parse error that prevented it."""

    spectrum: Optional[ParsedSpectrum] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def try_parse_dataset(
    text: str,
    id: str,
    label: str,
    mime_type: str,
    *,
    max_points: int = MAX_DATA_POINTS,
) -> ParseOutcome:
    """Like :func:`parse_dataset` but reports parse failures as a value."""

    try:
        spectrum = parse_dataset(text, id, label, mime_type, max_points=max_points)
    except ParseError as exc:
        return ParseOutcome(error=exc)
    return ParseOutcome(spectrum=spectrum)
