# === NAVMAP v1 ===
# {
#   "module": "tests.dataset_ingest.test_parser",
#   "purpose": "Tests for tabular parsing into multi-series spectra",
#   "sections": [
#     {"id": "scenarios", "name": "Reference Scenarios", "anchor": "SCN", "kind": "tests"},
#     {"id": "structure", "name": "Structure & Column Roles", "anchor": "STR", "kind": "tests"},
#     {"id": "extraction", "name": "Extraction & Ordering", "anchor": "EXT", "kind": "tests"},
#     {"id": "downsampling", "name": "Downsampling", "anchor": "DWN", "kind": "tests"}
#   ]
# }
# === /NAVMAP ===

"""Tests for tabular parsing into multi-series spectra."""

from __future__ import annotations

import logging
import math

import pytest

from SpectraKit.DatasetIngest.errors import (
    EmptyDataset,
    FetchErrorKind,
    InsufficientColumns,
    NoValidData,
    ParseErrorKind,
)
from SpectraKit.DatasetIngest.parser import find_x_column, parse_dataset, try_parse_dataset
from SpectraKit.DatasetIngest.types import DataPoint

URL = "https://example.org/spectrum.csv"


def _parse(text: str, mime: str = "text/csv", **kwargs):
    return parse_dataset(text, URL, "Sample", mime, **kwargs)


# ============================================================================
# Reference Scenarios
# ============================================================================


def test_single_series_with_named_x_column() -> None:
    """A wavelength/intensity table yields one series on a wavelength axis."""

    spectrum = _parse("wavelength,intensity\n400,0.12\n410,0.15")

    assert spectrum.id == URL
    assert spectrum.label == "Sample"
    assert spectrum.mime_type == "text/csv"
    assert spectrum.x_label == "wavelength"
    assert spectrum.x_values == (400.0, 410.0)
    assert [entry.label for entry in spectrum.series] == ["intensity"]
    assert spectrum.series[0].y_values == (0.12, 0.15)


def test_multiple_y_columns_become_series() -> None:
    """Every non-X column becomes a series in left-to-right order."""

    spectrum = _parse("x,y1,y2\n1,10,20\n2,15,25")

    assert spectrum.x_label == "x"
    assert [entry.label for entry in spectrum.series] == ["y1", "y2"]
    assert spectrum.series[0].y_values == (10.0, 15.0)
    assert spectrum.series[1].y_values == (20.0, 25.0)


@pytest.mark.parametrize("text", ["", "\n\n", "  \n\t\n"])
def test_empty_input_raises_empty_dataset(text: str) -> None:
    """Inputs without any non-blank row are empty."""

    with pytest.raises(EmptyDataset) as excinfo:
        _parse(text)
    assert excinfo.value.parse_kind is ParseErrorKind.EMPTY_DATASET
    assert excinfo.value.kind is FetchErrorKind.PARSE


def test_single_column_raises_insufficient_columns() -> None:
    """A lone X column cannot form a spectrum."""

    with pytest.raises(InsufficientColumns):
        _parse("x\n1\n2")


def test_oversized_dataset_is_downsampled_to_point_budget() -> None:
    """15 000 rows shrink to exactly 10 000 while keeping the X extremes."""

    rows = "\n".join(f"{i},{math.sin(i / 100.0)}" for i in range(15000))
    spectrum = _parse(f"x,y\n{rows}")

    assert len(spectrum.x_values) == 10000
    assert len(spectrum.series[0].y_values) == 10000
    assert spectrum.x_values[0] == 0.0
    assert spectrum.x_values[-1] == 14999.0


# ============================================================================
# Structure & Column Roles
# ============================================================================


def test_semicolon_separated_values() -> None:
    """Semicolon tables are detected automatically."""

    spectrum = _parse("wavelength;intensity\n400;0.1\n500;0.2")
    assert spectrum.x_values == (400.0, 500.0)
    assert spectrum.series[0].y_values == (0.1, 0.2)


def test_tab_separated_values_forced_by_mime() -> None:
    """The TSV MIME type forces tab splitting."""

    spectrum = _parse("x\ty\n1\t2\n3\t4", mime="text/tab-separated-values")
    assert spectrum.x_values == (1.0, 3.0)
    assert spectrum.series[0].y_values == (2.0, 4.0)


def test_space_separated_values_without_header() -> None:
    """Whitespace tables without a header get synthesized column names."""

    spectrum = _parse("1  100\n2  200\n3  300", mime="text/plain")

    assert spectrum.x_label == "Column 1"
    assert [entry.label for entry in spectrum.series] == ["Column 2"]
    assert spectrum.x_values == (1.0, 2.0, 3.0)
    assert spectrum.series[0].y_values == (100.0, 200.0, 300.0)


def test_metadata_rows_before_header_are_skipped() -> None:
    """The last non-numeric leading row is the header."""

    text = "# This is a comment\nSpectrum Data\nx,y\n1,2\n3,4"
    spectrum = _parse(text)

    assert spectrum.x_label == "x"
    assert spectrum.series[0].label == "y"
    assert spectrum.x_values == (1.0, 3.0)
    assert spectrum.series[0].y_values == (2.0, 4.0)


def test_quoted_headers_may_contain_the_delimiter() -> None:
    """Quoted fields are kept intact."""

    spectrum = _parse('x,"counts, corrected"\n1,2\n2,3')
    assert spectrum.series[0].label == "counts, corrected"


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        (["intensity", "Wavelength (nm)"], 1),
        (["counts", "Energy"], 1),
        (["counts", "keV"], 1),
        (["signal", "eV"], 1),
        (["a", "nm"], 1),
        (["Frequency", "amplitude"], 0),
        (["time", "wavelength"], 1),
        (["sample", "value"], 0),
        (["index2", "X"], 1),
    ],
)
def test_find_x_column(headers, expected: int) -> None:
    """Pattern priority decides the X column; column 0 is the fallback."""

    assert find_x_column(headers) == expected


def test_x_column_need_not_be_first() -> None:
    """A recognised X column in the middle is lifted out of the series."""

    spectrum = _parse("counts,energy,background\n5,1.0,1\n6,2.0,2")

    assert spectrum.x_label == "energy"
    assert [entry.label for entry in spectrum.series] == ["counts", "background"]
    assert spectrum.x_values == (1.0, 2.0)
    assert spectrum.series[0].y_values == (5.0, 6.0)


def test_unrecognised_headers_default_to_first_column() -> None:
    """Custom column names fall back to the first column as X."""

    spectrum = _parse("sample,value\n1,10\n2,20")
    assert spectrum.x_label == "sample"
    assert spectrum.series[0].label == "value"


# ============================================================================
# Extraction & Ordering
# ============================================================================


def test_rows_are_sorted_by_x() -> None:
    """Surviving rows are sorted by ascending X."""

    spectrum = _parse("x,y\n3,30\n1,10\n2,20")
    assert spectrum.x_values == (1.0, 2.0, 3.0)
    assert spectrum.series[0].y_values == (10.0, 20.0, 30.0)


def test_sort_is_stable_for_equal_x() -> None:
    """Rows sharing an X value keep their input order."""

    spectrum = _parse("x,y\n2,5\n1,1\n2,6")
    assert spectrum.x_values == (1.0, 2.0, 2.0)
    assert spectrum.series[0].y_values == (1.0, 5.0, 6.0)


def test_rows_with_invalid_x_are_skipped() -> None:
    """A non-numeric X cell drops the whole row."""

    spectrum = _parse("x,y\n1,10\nabc,20\n3,30\ninf,40")
    assert spectrum.x_values == (1.0, 3.0)
    assert spectrum.series[0].y_values == (10.0, 30.0)


def test_partially_invalid_rows_keep_nan_placeholders() -> None:
    """Invalid Y cells become ``nan``; rows with no valid Y are dropped."""

    spectrum = _parse("x,a,b\n1,10,\n2,,20\n3,,\n4,40,41")

    assert spectrum.x_values == (1.0, 2.0, 4.0)
    a_values, b_values = (entry.y_values for entry in spectrum.series)
    assert a_values[0] == 10.0 and math.isnan(a_values[1]) and a_values[2] == 40.0
    assert math.isnan(b_values[0]) and b_values[1] == 20.0 and b_values[2] == 41.0


def test_missing_trailing_cells_are_invalid_y_values() -> None:
    """Short rows keep alignment by padding missing cells with ``nan``."""

    spectrum = _parse("x,a,b\n1,10\n2,20,21")
    assert spectrum.series[0].y_values == (10.0, 20.0)
    assert math.isnan(spectrum.series[1].y_values[0])
    assert spectrum.series[1].y_values[1] == 21.0


def test_no_surviving_rows_raises_no_valid_data() -> None:
    """Text-only data rows leave nothing to plot."""

    with pytest.raises(NoValidData) as excinfo:
        _parse("x,y\na,b\nc,d")
    assert str(excinfo.value) == "No valid numeric data points found in dataset"


def test_negative_and_scientific_values() -> None:
    """Signs and exponents are parsed as floats."""

    spectrum = _parse("x,y\n-1.5,-2e-3\n0.5,1E2")
    assert spectrum.x_values == (-1.5, 0.5)
    assert spectrum.series[0].y_values == (-0.002, 100.0)


def test_legacy_single_series_view() -> None:
    """``points`` and ``y_label`` mirror the first series."""

    spectrum = _parse("x,y1,y2\n1,10,20\n2,15,25")
    assert spectrum.y_label == "y1"
    assert spectrum.points == (DataPoint(1.0, 10.0), DataPoint(2.0, 15.0))


def test_to_dict_uses_collaborator_field_names() -> None:
    """The JSON view exposes camelCase keys for rendering collaborators."""

    payload = _parse("x,y\n1,2").to_dict()
    assert payload == {
        "id": URL,
        "label": "Sample",
        "xValues": [1.0],
        "xLabel": "x",
        "series": [{"label": "y", "yValues": [2.0]}],
        "mimeType": "text/csv",
    }


def test_try_parse_dataset_reports_errors_as_values() -> None:
    """The value-returning variant never raises parse errors."""

    failed = try_parse_dataset("", URL, "Sample", "text/csv")
    assert not failed.ok
    assert isinstance(failed.error, EmptyDataset)

    parsed = try_parse_dataset("x,y\n1,2", URL, "Sample", "text/csv")
    assert parsed.ok
    assert parsed.spectrum is not None and len(parsed.spectrum) == 1


# ============================================================================
# Downsampling
# ============================================================================


def test_downsampling_keeps_series_aligned(caplog: pytest.LogCaptureFixture) -> None:
    """The same index subset is applied to X and to every series."""

    rows = "\n".join(f"{i},{(i * 7) % 13},{2 * ((i * 7) % 13)}" for i in range(1000))
    caplog.set_level(logging.INFO, logger="SpectraKit.DatasetIngest")

    spectrum = _parse(f"x,a,b\n{rows}", max_points=100)

    assert len(spectrum) == 100
    a_values, b_values = (entry.y_values for entry in spectrum.series)
    assert all(b == 2 * a for a, b in zip(a_values, b_values))
    assert all(a == (int(x) * 7) % 13 for x, a in zip(spectrum.x_values, a_values))
    assert any(record.getMessage() == "dataset downsampled" for record in caplog.records)


def test_datasets_within_budget_are_not_downsampled() -> None:
    """Exactly ``max_points`` rows are returned untouched."""

    rows = "\n".join(f"{i},{i}" for i in range(50))
    spectrum = _parse(f"x,y\n{rows}", max_points=50)
    assert spectrum.x_values == tuple(float(i) for i in range(50))


def test_to_dict_maps_nan_placeholders_to_none() -> None:
    """Invalid Y cells serialise as ``null`` rather than a bare ``NaN`` token."""

    spectrum = _parse("x,a,b\n1,2,\n2,3,4\n")
    assert math.isnan(spectrum.series[1].y_values[0])

    payload = spectrum.to_dict()
    assert payload["series"][1]["yValues"] == [None, 4.0]
    assert payload["series"][0]["yValues"] == [2.0, 3.0]


def test_unit_suffixed_x_cells_drop_the_row() -> None:
    """An X cell such as ``410nm`` is not numeric, so its row is discarded."""

    spectrum = _parse("x,y\n400,1\n410nm,2\n420,3")
    assert spectrum.x_values == (400.0, 420.0)
    assert spectrum.series[0].y_values == (1.0, 3.0)
