"""Tests for pydantic-settings configuration and HTTP client construction."""

from __future__ import annotations

import asyncio
import logging
import ssl
from pathlib import Path

import httpx
import pytest
from pydantic import ValidationError as PydanticValidationError

from SpectraKit.DatasetIngest.client import ACCEPT_HEADER, create_http_client, create_ssl_context
from SpectraKit.DatasetIngest.policy import CACHE_TTL_SECONDS, MAX_DATA_POINTS, MAX_DATASET_SIZE
from SpectraKit.DatasetIngest.settings import (
    CacheSettings,
    HttpSettings,
    IngestSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)


def test_defaults_match_policy_constants() -> None:
    settings = IngestSettings()

    assert settings.limits.max_dataset_bytes == MAX_DATASET_SIZE
    assert settings.limits.max_points == MAX_DATA_POINTS
    assert settings.cache.ttl_seconds == CACHE_TTL_SECONDS
    assert settings.http.verify_tls is True
    assert settings.http.trust_env is False
    assert settings.logging.level == "INFO"
    assert settings.logging.log_dir is None


def test_nested_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPECTRAKIT_CACHE__TTL_SECONDS", "90")
    monkeypatch.setenv("SPECTRAKIT_HTTP__TIMEOUT_READ", "12.5")
    monkeypatch.setenv("SPECTRAKIT_LOGGING__LEVEL", "debug")

    settings = IngestSettings()

    assert settings.cache.ttl_seconds == 90.0
    assert settings.http.timeout_read == 12.5
    assert settings.logging.level == "DEBUG"
    assert settings.logging.level_int() == logging.DEBUG


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(PydanticValidationError):
        LoggingSettings(level="chatty")
    with pytest.raises(PydanticValidationError):
        CacheSettings(ttl_seconds=0)

    monkeypatch.setenv("SPECTRAKIT_LIMITS__MAX_POINTS", "2")
    with pytest.raises(PydanticValidationError):
        IngestSettings()


def test_settings_are_frozen() -> None:
    settings = IngestSettings()
    with pytest.raises(PydanticValidationError):
        settings.cache = CacheSettings(ttl_seconds=1.0)


def test_blank_log_dir_disables_file_logging(tmp_path: Path) -> None:
    assert LoggingSettings(log_dir="  ").log_dir is None
    assert LoggingSettings(log_dir=str(tmp_path)).log_dir == tmp_path


def test_get_settings_is_cached_until_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("SPECTRAKIT_CACHE__TTL_SECONDS", "5")
    assert get_settings() is first

    clear_settings_cache()
    reloaded = get_settings()
    assert reloaded is not first
    assert reloaded.cache.ttl_seconds == 5.0


def test_config_hash_tracks_effective_values() -> None:
    assert IngestSettings().config_hash() == IngestSettings().config_hash()
    changed = IngestSettings(cache=CacheSettings(ttl_seconds=1.0))
    assert changed.config_hash() != IngestSettings().config_hash()


def test_ssl_context_verifies_by_default() -> None:
    ctx = create_ssl_context(HttpSettings())
    assert ctx.verify_mode == ssl.CERT_REQUIRED
    assert ctx.check_hostname is True


def test_ssl_context_can_disable_verification(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="SpectraKit.DatasetIngest")
    ctx = create_ssl_context(HttpSettings(verify_tls=False))

    assert ctx.verify_mode == ssl.CERT_NONE
    assert not ctx.check_hostname
    assert any("TLS verification DISABLED" in record.getMessage() for record in caplog.records)


def test_http_client_applies_settings() -> None:
    settings = HttpSettings(
        timeout_read=7.0, follow_redirects=False, user_agent="spectrakit-test/1.0"
    )
    client = create_http_client(settings)
    try:
        assert client.headers["Accept"] == ACCEPT_HEADER
        assert client.headers["User-Agent"] == "spectrakit-test/1.0"
        assert client.timeout.read == 7.0
        assert client.follow_redirects is False
    finally:
        asyncio.run(client.aclose())


def test_http_client_refuses_cookies() -> None:
    client = create_http_client(HttpSettings())
    try:
        request = httpx.Request("GET", "https://data.example.org/a.csv")
        response = httpx.Response(
            200, headers={"Set-Cookie": "sid=secret; Path=/"}, request=request
        )
        client.cookies.extract_cookies(response)
        assert len(client.cookies.jar) == 0
    finally:
        asyncio.run(client.aclose())
