"""Tagged cell values produced by a single classification pass over a row.

Every raw string cell is classified exactly once as either a
:class:`NumericCell` (a finite float) or a :class:`TextCell` (anything else,
including blanks and non-finite literals such as ``nan`` or ``inf``).  Header
detection and numeric extraction both read these tags instead of re-parsing
strings.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

__all__ = [
    "NumericCell",
    "TextCell",
    "Cell",
    "classify_cell",
    "classify_row",
    "is_non_numeric_row",
]


@dataclass(frozen=True)
class NumericCell:
    """Cell holding a finite floating point value."""

    value: float

    def as_float(self) -> float:
        return self.value


@dataclass(frozen=True)
class TextCell:
    """Cell whose stripped text is not a finite number."""

    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text

    def as_float(self) -> float:
        return math.nan


Cell = Union[NumericCell, TextCell]


def classify_cell(raw: str) -> Cell:
    """Classify ``raw`` as numeric or text.

    Examples:
        >>> classify_cell(" 1.5e3 ")
        NumericCell(value=1500.0)
        >>> classify_cell("inf")
        TextCell(text='inf')
    """

    stripped = raw.strip()
    if not stripped or "_" in stripped:
        return TextCell(stripped)
    try:
        value = float(stripped)
    except ValueError:
        return TextCell(stripped)
    if not math.isfinite(value):
        return TextCell(stripped)
    return NumericCell(value)


def classify_row(raw_cells: Sequence[str]) -> Tuple[Cell, ...]:
    return tuple(classify_cell(cell) for cell in raw_cells)


def is_non_numeric_row(row: Sequence[Cell]) -> bool:
    """Return ``True`` when any non-blank cell is not a finite number."""

    return any(isinstance(cell, TextCell) and not cell.is_blank for cell in row)
