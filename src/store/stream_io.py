"""Bounded streaming reads into session buffers.

Remote bodies may arrive in arbitrarily small chunks, so reads loop
until the stream reports end-of-stream instead of trusting one call.
"""

from __future__ import annotations

from core.errors import SeisCloudFormatError, SeisCloudStorageError
from store.blob_store import ReadableStream


def read_stream_into(
    stream: ReadableStream,
    buffer: memoryview,
    expected_length: int,
    chunk_size: int,
    context: str,
) -> int:
    """Read a body stream into the leading bytes of a buffer.

    Args:
        stream: Source stream.
        buffer: Destination buffer.
        expected_length: Number of bytes the stream must deliver.
        chunk_size: Maximum bytes requested per read.
        context: Object description for error messages.

    Returns:
        Number of bytes read.

    Raises:
        SeisCloudFormatError: If the stream holds more bytes than expected.
        SeisCloudStorageError: If reading fails or ends short of the expected length.
    """
    capacity = len(buffer)
    count = 0
    while True:
        try:
            chunk = stream.read(chunk_size)
        except Exception as error:
            raise SeisCloudStorageError(
                f"Failed to stream {context} after {count} of {expected_length} bytes: {error}. "
                "Retry the read."
            ) from error
        if not chunk:
            break
        end = count + len(chunk)
        if end > capacity:
            raise SeisCloudFormatError(
                f"Object {context} exceeds the frame buffer: received at least {end} bytes, "
                f"buffer holds {capacity}. The object does not match the dataset record layout."
            )
        buffer[count:end] = chunk
        count = end
    if count > expected_length:
        raise SeisCloudFormatError(
            f"Object {context} holds {count} bytes, expected {expected_length} "
            "from its trace count and record length."
        )
    if count < expected_length:
        raise SeisCloudStorageError(
            f"Short read for {context}: expected {expected_length} bytes, received {count}. "
            "The transfer ended early; retry the read."
        )
    return count


def read_stream_bytes(stream: ReadableStream, chunk_size: int, context: str) -> bytes:
    """Read a body stream of unknown length until end-of-stream.

    Args:
        stream: Source stream.
        chunk_size: Maximum bytes requested per read.
        context: Object description for error messages.

    Returns:
        Every byte delivered by the stream.

    Raises:
        SeisCloudStorageError: If reading fails.
    """
    chunks: list[bytes] = []
    while True:
        try:
            chunk = stream.read(chunk_size)
        except Exception as error:
            received = sum(len(item) for item in chunks)
            raise SeisCloudStorageError(
                f"Failed to stream {context} after {received} bytes: {error}. Retry the read."
            ) from error
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)
