"""Blob store contract.

This module defines the key/value object interface the frame store
depends on. Concrete backends live in sibling modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol


class ReadableStream(Protocol):
    """Minimal binary stream returned for object bodies."""

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


@dataclass
class BlobObject:
    """One fetched object: streamed body plus string metadata.

    Attributes:
        body: Readable body stream; may deliver fewer bytes than requested.
        metadata: User metadata attributes of the object.
        content_length: Object length declared by the store.
    """

    body: ReadableStream
    metadata: dict[str, str] = field(default_factory=dict)
    content_length: int = 0

    def close(self) -> None:
        self.body.close()

    def __enter__(self) -> "BlobObject":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BlobStore(Protocol):
    """Key/value object store with per-object string metadata."""

    def exists(self, bucket: str, key: str) -> bool:
        """Return True if an object exists at bucket/key."""
        ...

    def get(self, bucket: str, key: str) -> BlobObject | None:
        """Fetch an object, returning None when it does not exist."""
        ...

    def put(self, bucket: str, key: str, body: bytes, metadata: Mapping[str, str]) -> None:
        """Create or overwrite an object with the given body and metadata."""
        ...
