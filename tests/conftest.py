# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "reset-ingest-state",
#       "name": "_reset_ingest_state",
#       "anchor": "function-reset-ingest-state",
#       "kind": "function"
#     },
#     {
#       "id": "ingest-settings",
#       "name": "ingest_settings",
#       "anchor": "function-ingest-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

This module makes ``src`` importable without an editable install and provides
fixtures shared by the dataset ingestion tests: hermetic settings with the
background sweeper disabled, and isolation of the process-wide settings cache
and the handlers :func:`setup_logging` installs.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from SpectraKit.DatasetIngest.logging_utils import LOGGER_NAME  # noqa: E402
from SpectraKit.DatasetIngest.settings import (  # noqa: E402
    CacheSettings,
    IngestSettings,
    clear_settings_cache,
)


@pytest.fixture(autouse=True)
def _reset_ingest_state(monkeypatch: pytest.MonkeyPatch):
    """Drop ``SPECTRAKIT_*`` variables, cached settings, and managed log handlers."""

    for key in [name for name in os.environ if name.startswith("SPECTRAKIT_")]:
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_spectrakit_managed", False):
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def ingest_settings() -> IngestSettings:
    """Default settings without the periodic cache sweeper."""

    return IngestSettings(cache=CacheSettings(sweeper_enabled=False))
