"""Python SDK for dataset operations.

This module exposes high-level APIs for creating datasets, probing
them, and opening frame store sessions against the configured
blob store backend.
"""

from __future__ import annotations

from pathlib import Path

from core.addressing import derive_storage_prefix, properties_key
from core.config import SeisCloudConfig
from core.constants import PROPERTIES_OBJECT_NAME
from core.errors import SeisCloudConfigError
from core.logging_config import get_logger
from core.types import DatasetMetadata
from store.blob_store import BlobStore
from store.frame_store import FrameStore
from store.local_blob_store import LocalBlobStore
from store.metadata_io import LocalMetadataSource, RemoteMetadataSource, write_remote_metadata
from store.s3_blob_store import S3BlobStore

_LOGGER = get_logger(__name__)


class SeisCloudClient:
    """Primary SDK entry point for frame-addressed datasets."""

    def __init__(
        self,
        config: SeisCloudConfig | None = None,
        blob_store: BlobStore | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            blob_store: Optional backend; built from config when omitted.
        """
        self._config = config or SeisCloudConfig.from_env()
        self._blob_store = blob_store or build_blob_store(self._config)

    @property
    def blob_store(self) -> BlobStore:
        return self._blob_store

    def open_remote(self, bucket: str, prefix: str) -> FrameStore:
        """Open a frame store session on a dataset stored under bucket/prefix.

        Each call returns an independent session with its own buffers.
        """
        return FrameStore(self._blob_store, self._config).open_remote(bucket, prefix)

    def open_local(
        self,
        dataset_path: str | Path,
        bucket: str,
        prefix: str | None = None,
    ) -> FrameStore:
        """Open a session using properties from a local dataset directory."""
        return FrameStore(self._blob_store, self._config).open_local(dataset_path, bucket, prefix)

    def create_dataset(
        self,
        bucket: str,
        prefix: str,
        metadata: DatasetMetadata,
        overwrite: bool = False,
    ) -> str:
        """Write the properties document of a new dataset.

        Returns:
            Key of the stored properties document.

        Raises:
            SeisCloudStorageError: If the dataset exists and overwrite is False.
        """
        key = write_remote_metadata(self._blob_store, bucket, prefix, metadata, overwrite)
        _LOGGER.info("dataset_created", bucket=bucket, prefix=prefix)
        return key

    def create_from_local(
        self,
        bucket: str,
        dataset_path: str | Path,
        overwrite: bool = False,
    ) -> str:
        """Publish a local dataset's properties under its derived prefix.

        Args:
            bucket: Target bucket.
            dataset_path: Local dataset directory ending with ``.js``.
            overwrite: Replace existing remote properties when True.

        Returns:
            Storage prefix of the published dataset.

        Raises:
            SeisCloudConfigError: If no prefix can be derived or properties are invalid.
        """
        prefix = derive_storage_prefix(str(dataset_path))
        if prefix is None:
            raise SeisCloudConfigError(
                f"Could not construct a storage prefix from path {dataset_path}. "
                "Use a path like <project>/<subproject>/<name>.js."
            )
        metadata = LocalMetadataSource(Path(dataset_path) / PROPERTIES_OBJECT_NAME).load()
        self.create_dataset(bucket, prefix, metadata, overwrite)
        return prefix

    def dataset_exists(self, bucket: str, prefix: str) -> bool:
        """Return whether a properties document exists under bucket/prefix."""
        return self._blob_store.exists(bucket, properties_key(prefix))

    def read_metadata(self, bucket: str, prefix: str) -> DatasetMetadata:
        """Load dataset metadata without opening a session."""
        source = RemoteMetadataSource(
            self._blob_store, bucket, prefix, self._config.read_chunk_size
        )
        return source.load()


def is_local_dataset(dataset_path: str | Path) -> bool:
    """Return whether a local directory holds a dataset properties document."""
    path = Path(dataset_path)
    return path.is_dir() and (path / PROPERTIES_OBJECT_NAME).is_file()


def build_blob_store(config: SeisCloudConfig) -> BlobStore:
    """Select the blob store backend from runtime configuration.

    Args:
        config: Runtime configuration.

    Returns:
        Local filesystem store when a local root is configured, else S3.
    """
    if config.local_store_root is not None:
        return LocalBlobStore(config.local_store_root)
    return S3BlobStore.from_config(config)
