"""Trace sample codecs.

This module defines the capability interface used by the frame store
to turn sample arrays into fixed-length trace records and back.
Only uncompressed IEEE formats ship here; compressed formats are
registered by the surrounding system.
"""

from __future__ import annotations

from typing import Callable, Protocol

import numpy as np

from core.errors import SeisCloudConfigError
from core.types import ByteOrder

TraceCodecFactory = Callable[[ByteOrder], "TraceCodec"]


class TraceCodec(Protocol):
    """Encode and decode frames of trace samples into record buffers."""

    trace_format: str

    @property
    def sample_dtype(self) -> np.dtype: ...

    def record_length(self, sample_count: int) -> int:
        """Return bytes per encoded trace for a sample count."""
        ...

    def encode(self, trace_count: int, samples: np.ndarray, dest: memoryview) -> None:
        """Encode the first ``trace_count`` rows of samples into dest."""
        ...

    def decode(self, trace_count: int, src: memoryview, dest: np.ndarray) -> None:
        """Decode ``trace_count`` records from src into the rows of dest."""
        ...


class IeeeTraceCodec:
    """Uncompressed IEEE floating point trace records.

    Each record is ``sample_count`` contiguous samples in the dataset
    byte order, so the record length is ``itemsize * sample_count``.
    """

    def __init__(self, trace_format: str, sample_type: str, byte_order: ByteOrder) -> None:
        self.trace_format = trace_format
        order = ">" if byte_order == "BIG_ENDIAN" else "<"
        self._storage_dtype = np.dtype(f"{order}{sample_type}")
        self._sample_dtype = np.dtype(sample_type)

    @property
    def sample_dtype(self) -> np.dtype:
        return self._sample_dtype

    def record_length(self, sample_count: int) -> int:
        return self._storage_dtype.itemsize * sample_count

    def encode(self, trace_count: int, samples: np.ndarray, dest: memoryview) -> None:
        sample_count = samples.shape[1]
        records = np.frombuffer(
            dest, dtype=self._storage_dtype, count=trace_count * sample_count
        ).reshape(trace_count, sample_count)
        records[:] = samples[:trace_count]

    def decode(self, trace_count: int, src: memoryview, dest: np.ndarray) -> None:
        sample_count = dest.shape[1]
        records = np.frombuffer(
            src, dtype=self._storage_dtype, count=trace_count * sample_count
        ).reshape(trace_count, sample_count)
        dest[:trace_count] = records


_CODEC_FACTORIES: dict[str, TraceCodecFactory] = {
    "FLOAT": lambda byte_order: IeeeTraceCodec("FLOAT", "f4", byte_order),
    "DOUBLE": lambda byte_order: IeeeTraceCodec("DOUBLE", "f8", byte_order),
}


def register_trace_codec(trace_format: str, factory: TraceCodecFactory) -> None:
    """Register a codec factory for a trace format name.

    Args:
        trace_format: Format name as declared in dataset metadata.
        factory: Callable building a codec for a byte order.
    """
    _CODEC_FACTORIES[trace_format] = factory


def supported_trace_formats() -> tuple[str, ...]:
    """Return registered trace format names."""
    return tuple(sorted(_CODEC_FACTORIES))


def resolve_trace_codec(trace_format: str, byte_order: ByteOrder) -> TraceCodec:
    """Build the codec for a declared trace format.

    Args:
        trace_format: Format name from dataset metadata.
        byte_order: Dataset byte order.

    Returns:
        Trace codec instance.

    Raises:
        SeisCloudConfigError: If no codec is registered for the format.
    """
    factory = _CODEC_FACTORIES.get(trace_format)
    if factory is None:
        raise SeisCloudConfigError(
            f"Unsupported trace format '{trace_format}'. "
            f"Registered formats: {supported_trace_formats()}. "
            "Register a codec with register_trace_codec before opening the dataset."
        )
    return factory(byte_order)
