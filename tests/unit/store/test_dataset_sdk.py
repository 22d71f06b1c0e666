"""Unit tests for SDK dataset operations."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import numpy as np
import pytest

from core.config import SeisCloudConfig
from core.errors import SeisCloudConfigError, SeisCloudStorageError
from store.dataset_sdk import SeisCloudClient, build_blob_store, is_local_dataset
from store.local_blob_store import LocalBlobStore
from tests.fixture_paths import fixture_path, sample_metadata


def _client(tmp_path: Path) -> SeisCloudClient:
    config = replace(SeisCloudConfig.from_env(), local_store_root=tmp_path)
    return SeisCloudClient(config)


def test_client_uses_local_store_when_root_configured(tmp_path: Path) -> None:
    """Configured local roots should select the filesystem backend."""
    assert isinstance(_client(tmp_path).blob_store, LocalBlobStore)


def test_build_blob_store_roots_local_backend(tmp_path: Path) -> None:
    """Local backends should be rooted at the configured directory."""
    config = replace(SeisCloudConfig.from_env(), local_store_root=tmp_path)

    store = build_blob_store(config)

    assert isinstance(store, LocalBlobStore) and store.root == tmp_path.resolve()


def test_create_dataset_makes_dataset_visible(tmp_path: Path) -> None:
    """Created datasets should be reported as existing."""
    client = _client(tmp_path)
    client.create_dataset("bucket", "p/s/line", sample_metadata())

    assert client.dataset_exists("bucket", "p/s/line")


def test_create_dataset_refuses_existing_dataset(tmp_path: Path) -> None:
    """Creating over an existing dataset should fail without overwrite."""
    client = _client(tmp_path)
    client.create_dataset("bucket", "p/s/line", sample_metadata())

    with pytest.raises(SeisCloudStorageError):
        client.create_dataset("bucket", "p/s/line", sample_metadata())


def test_create_dataset_overwrites_when_requested(tmp_path: Path) -> None:
    """Overwrite should replace existing dataset properties."""
    client = _client(tmp_path)
    client.create_dataset("bucket", "p/s/line", sample_metadata())
    client.create_dataset("bucket", "p/s/line", sample_metadata(trace_format="DOUBLE"), True)

    assert client.read_metadata("bucket", "p/s/line").trace_format == "DOUBLE"


def test_create_from_local_publishes_under_derived_prefix(tmp_path: Path) -> None:
    """Local datasets should publish under their derived storage prefix."""
    client = _client(tmp_path)

    prefix = client.create_from_local("bucket", fixture_path("datasets/project/survey/line12.js"))

    assert client.dataset_exists("bucket", prefix)


def test_create_from_local_raises_for_underivable_path(tmp_path: Path) -> None:
    """Paths without a .js suffix should fail to publish."""
    client = _client(tmp_path)

    with pytest.raises(SeisCloudConfigError):
        client.create_from_local("bucket", tmp_path / "line12.dat")


def test_open_remote_returns_independent_sessions(tmp_path: Path) -> None:
    """Each open should return its own session over the same dataset."""
    client = _client(tmp_path)
    client.create_dataset("bucket", "p/s/line", sample_metadata(has_headers=False))
    writer = client.open_remote("bucket", "p/s/line")
    reader = client.open_remote("bucket", "p/s/line")
    writer.put_frame_traces(10, 100, 1, np.ones((1, 8), dtype=np.float32))

    trace_count, _ = reader.get_frame_traces(10, 100)

    assert trace_count == 1 and writer is not reader


def test_is_local_dataset_detects_properties_document() -> None:
    """Dataset directories holding properties should be detected."""
    assert is_local_dataset(fixture_path("datasets/project/survey/line12.js"))


def test_is_local_dataset_rejects_plain_directory(tmp_path: Path) -> None:
    """Directories without properties should not be datasets."""
    assert is_local_dataset(tmp_path) is False
