"""Header record packing helpers.

Header records are fixed-width byte slots, one per trace, packed
contiguously in trace order. These helpers move header words and raw
records between caller arrays and a session buffer.
"""

from __future__ import annotations

import numpy as np

from core.errors import SeisCloudConfigError
from core.types import HeaderLayout

_FIELD_DTYPES = {
    "INTEGER": "i4",
    "LONG": "i8",
    "FLOAT": "f4",
    "DOUBLE": "f8",
}


def pack_header_words(
    trace_count: int,
    headers: np.ndarray,
    dest: memoryview,
    header_words: int,
    byte_order: str,
) -> None:
    """Write the first ``trace_count`` rows of 32-bit header words into dest.

    Args:
        trace_count: Number of header rows to pack.
        headers: Integer array with at least ``header_words`` columns.
        dest: Destination buffer.
        header_words: 32-bit words per header record.
        byte_order: Numpy byte order character.
    """
    words = np.frombuffer(
        dest, dtype=np.dtype(f"{byte_order}i4"), count=trace_count * header_words
    ).reshape(trace_count, header_words)
    words[:] = headers[:trace_count, :header_words]


def unpack_header_words(
    trace_count: int,
    src: memoryview,
    dest: np.ndarray,
    header_words: int,
    byte_order: str,
) -> None:
    """Read ``trace_count`` header records from src into the rows of dest."""
    words = np.frombuffer(
        src, dtype=np.dtype(f"{byte_order}i4"), count=trace_count * header_words
    ).reshape(trace_count, header_words)
    dest[:trace_count, :header_words] = words


def restride_records(
    trace_count: int,
    src: memoryview,
    src_stride: int,
    dest: memoryview,
    dest_stride: int,
) -> None:
    """Copy records one at a time between buffers with different strides.

    Each destination record receives the leading bytes of its source
    record; trailing bytes are truncated or zero filled.

    Args:
        trace_count: Number of records to copy.
        src: Source buffer holding ``trace_count * src_stride`` bytes.
        src_stride: Bytes per source record.
        dest: Destination buffer.
        dest_stride: Bytes per destination record.
    """
    copy_length = min(src_stride, dest_stride)
    for trace in range(trace_count):
        src_offset = trace * src_stride
        dest_offset = trace * dest_stride
        dest[dest_offset : dest_offset + copy_length] = src[src_offset : src_offset + copy_length]
        if dest_stride > copy_length:
            pad_start = dest_offset + copy_length
            dest[pad_start : dest_offset + dest_stride] = bytes(dest_stride - copy_length)


def read_header_field(
    layout: HeaderLayout,
    record: bytes | memoryview,
    name: str,
    byte_order: str,
) -> object:
    """Decode one named field from a single header record.

    Args:
        layout: Declared header layout.
        record: Bytes of one header record.
        name: Field name.
        byte_order: Numpy byte order character.

    Returns:
        Scalar for single-element numeric fields, a tuple for arrays,
        and ``bytes`` for byte strings.

    Raises:
        SeisCloudConfigError: If the field is unknown or the record is short.
    """
    header_field = layout.field(name)
    end = header_field.offset + header_field.byte_length
    if len(record) < end:
        raise SeisCloudConfigError(
            f"Header record of {len(record)} bytes is too short for field '{name}' "
            f"ending at byte {end}."
        )
    if header_field.format == "BYTESTRING":
        return bytes(record[header_field.offset : end])
    dtype = np.dtype(f"{byte_order}{_FIELD_DTYPES[header_field.format]}")
    values = np.frombuffer(
        record, dtype=dtype, count=header_field.count, offset=header_field.offset
    )
    if header_field.count == 1:
        return values[0].item()
    return tuple(value.item() for value in values)

