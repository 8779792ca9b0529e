"""Tests for the lazy public facade of ``SpectraKit.DatasetIngest``."""

from __future__ import annotations

import pytest

import SpectraKit.DatasetIngest as ingest
from SpectraKit.DatasetIngest import parser, session


def test_lazy_exports_resolve_to_module_objects() -> None:
    assert ingest.DatasetSession is session.DatasetSession
    assert ingest.parse_dataset is parser.parse_dataset
    assert ingest.__version__ == "0.1.0"


def test_every_export_is_importable() -> None:
    for name in ingest.__all__:
        assert getattr(ingest, name) is not None


def test_dir_lists_exports() -> None:
    names = dir(ingest)
    assert "fetch_dataset" not in names
    assert {"DatasetSession", "parse_dataset", "validate_dataset_url"} <= set(names)


def test_unknown_attribute_raises() -> None:
    with pytest.raises(AttributeError, match="no attribute 'fetch_everything'"):
        ingest.fetch_everything  # noqa: B018
