"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import SeisCloudConfig
from core.constants import DEFAULT_READ_CHUNK_SIZE
from core.errors import SeisCloudConfigError


def test_from_env_reads_local_store_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the local store root from environment."""
    monkeypatch.setenv("SEISCLOUD_LOCAL_STORE_ROOT", "./.tmp-seiscloud")

    config = SeisCloudConfig.from_env()

    assert config.local_store_root is not None and config.local_store_root.name == ".tmp-seiscloud"


def test_from_env_defaults_read_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to the default streamed read chunk size."""
    monkeypatch.delenv("SEISCLOUD_READ_CHUNK_SIZE", raising=False)

    config = SeisCloudConfig.from_env()

    assert config.read_chunk_size == DEFAULT_READ_CHUNK_SIZE


def test_from_env_reads_endpoint_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should carry an S3-compatible endpoint override."""
    monkeypatch.setenv("SEISCLOUD_S3_ENDPOINT_URL", "http://localhost:9000")

    config = SeisCloudConfig.from_env()

    assert config.s3_endpoint_url == "http://localhost:9000"


def test_from_env_raises_for_invalid_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric read chunk size."""
    monkeypatch.setenv("SEISCLOUD_READ_CHUNK_SIZE", "not-a-number")

    with pytest.raises(SeisCloudConfigError):
        SeisCloudConfig.from_env()

    assert os.getenv("SEISCLOUD_READ_CHUNK_SIZE") == "not-a-number"


def test_from_env_raises_for_non_positive_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail when the read chunk size is zero."""
    monkeypatch.setenv("SEISCLOUD_READ_CHUNK_SIZE", "0")

    with pytest.raises(SeisCloudConfigError):
        SeisCloudConfig.from_env()
