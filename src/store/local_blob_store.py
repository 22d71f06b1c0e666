"""Local filesystem blob store backend.

Keys map to files under ``<root>/<bucket>/<key>``. Object metadata is
kept in a JSON sidecar next to each body file. This backend suits
local development, tests, and datasets staged on shared disks.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from core.constants import LOCAL_METADATA_SUFFIX
from core.errors import SeisCloudConfigError, SeisCloudStorageError
from store.blob_store import BlobObject


class LocalBlobStore:
    """Blob store rooted in a local directory."""

    def __init__(self, root: Path) -> None:
        """Create the store and its root directory.

        Args:
            root: Directory holding one subdirectory per bucket.
        """
        self._root = Path(root).expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def exists(self, bucket: str, key: str) -> bool:
        return self._resolve(bucket, key).is_file()

    def get(self, bucket: str, key: str) -> BlobObject | None:
        """Open an object body and load its metadata sidecar.

        Raises:
            SeisCloudStorageError: If the files exist but cannot be read.
        """
        body_path = self._resolve(bucket, key)
        if not body_path.is_file():
            return None
        metadata = _read_metadata_sidecar(_metadata_path(body_path))
        try:
            body = body_path.open("rb")
        except OSError as error:
            raise SeisCloudStorageError(
                f"Failed to read object {bucket}/{key} at {body_path}: {error}. "
                "Check file permissions."
            ) from error
        return BlobObject(body=body, metadata=metadata, content_length=body_path.stat().st_size)

    def put(self, bucket: str, key: str, body: bytes, metadata: Mapping[str, str]) -> None:
        """Write body and metadata, replacing any existing object.

        Both files are staged before either replaces the live object, so a
        failed write leaves the previous object untouched.

        Raises:
            SeisCloudStorageError: If the files cannot be written.
        """
        body_path = self._resolve(bucket, key)
        metadata_path = _metadata_path(body_path)
        staged: list[tuple[Path, Path]] = []
        try:
            body_path.parent.mkdir(parents=True, exist_ok=True)
            staged.append((_stage_write(body_path, bytes(body)), body_path))
            metadata_payload = json.dumps(dict(metadata)).encode("utf-8")
            staged.append((_stage_write(metadata_path, metadata_payload), metadata_path))
            for temp_path, path in staged:
                os.replace(temp_path, path)
        except OSError as error:
            for temp_path, _ in staged:
                temp_path.unlink(missing_ok=True)
            raise SeisCloudStorageError(
                f"Failed to write object {bucket}/{key} at {body_path}: {error}. "
                "Check write permissions and available disk space."
            ) from error

    def _resolve(self, bucket: str, key: str) -> Path:
        """Translate bucket/key into a file path under the root.

        Raises:
            SeisCloudConfigError: If the key escapes the bucket directory.
        """
        bucket_root = self._root / bucket
        normalized_key = key.strip("/").replace("\\", "/")
        path = (bucket_root / normalized_key).resolve()
        if not bucket or bucket_root.resolve() not in path.parents:
            raise SeisCloudConfigError(
                f"Invalid object key {bucket}/{key}: resolves outside the store root {self._root}."
            )
        return path


def _metadata_path(body_path: Path) -> Path:
    return body_path.with_name(body_path.name + LOCAL_METADATA_SUFFIX)


def _read_metadata_sidecar(metadata_path: Path) -> dict[str, str]:
    """Read an object metadata sidecar; a missing sidecar means no metadata.

    Raises:
        SeisCloudStorageError: If the sidecar is unreadable or malformed.
    """
    if not metadata_path.exists():
        return {}
    try:
        payload = json.loads(metadata_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise SeisCloudStorageError(
            f"Failed to read object metadata at {metadata_path}: {error}. "
            "Rewrite the object to restore its metadata."
        ) from error
    if not isinstance(payload, dict):
        raise SeisCloudStorageError(
            f"Failed to read object metadata at {metadata_path}: expected a JSON object."
        )
    return {str(key): str(value) for key, value in payload.items()}


def _stage_write(path: Path, payload: bytes) -> Path:
    temp_path = path.with_name(f".{path.name}.tmp")
    temp_path.write_bytes(payload)
    return temp_path
