"""Tests for single-pass cell classification."""

from __future__ import annotations

import math

import pytest

from SpectraKit.DatasetIngest.cells import (
    NumericCell,
    TextCell,
    classify_cell,
    classify_row,
    is_non_numeric_row,
)


@pytest.mark.parametrize(
    ("raw", "value"),
    [("1", 1.0), (" -2.5 ", -2.5), ("1e3", 1000.0), ("+.5", 0.5), ("4.", 4.0)],
)
def test_classify_cell_numeric(raw: str, value: float) -> None:
    """Finite float literals become ``NumericCell`` values."""

    cell = classify_cell(raw)
    assert isinstance(cell, NumericCell)
    assert cell.value == value


@pytest.mark.parametrize("raw", ["", "   ", "abc", "nan", "inf", "-Infinity", "1_000", "1,5"])
def test_classify_cell_text(raw: str) -> None:
    """Blanks, words, non-finite literals, and grouped digits are text."""

    cell = classify_cell(raw)
    assert isinstance(cell, TextCell)
    assert math.isnan(cell.as_float())


def test_is_non_numeric_row_ignores_blank_cells() -> None:
    """Blank cells alone do not make a row non-numeric."""

    assert not is_non_numeric_row(classify_row(["1", "", "3"]))
    assert is_non_numeric_row(classify_row(["1", "n/a", "3"]))
    assert is_non_numeric_row(classify_row(["wavelength", "intensity"]))


@pytest.mark.parametrize("raw", ["400nm", "1.5 eV", "12abc", "0x10"])
def test_unit_suffixed_cells_are_text(raw: str) -> None:
    """Only whole-cell float literals count; unit suffixes are not trimmed off."""

    assert isinstance(classify_cell(raw), TextCell)
