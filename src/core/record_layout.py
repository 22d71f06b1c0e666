"""Record length and buffer capacity derivation.

This module sizes the fixed trace and header record slots of a frame
object. Trace strides come from the trace codec; header strides are
the declared header length padded to whole 32-bit words.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.constants import HEADER_WORD_BYTES
from core.errors import SeisCloudConfigError
from core.types import DatasetMetadata

if TYPE_CHECKING:
    from codec.trace_codec import TraceCodec


@dataclass(frozen=True)
class RecordLayout:
    """Per-session record strides and buffer capacities.

    Attributes:
        trace_record_length: Bytes per trace slot in a Traces object.
        header_record_length: Bytes per header slot in a Headers object.
        max_traces_per_frame: Trace slots per frame.
        samples_per_trace: Samples in every trace.
    """

    trace_record_length: int
    header_record_length: int
    max_traces_per_frame: int
    samples_per_trace: int

    @property
    def header_words(self) -> int:
        return self.header_record_length // HEADER_WORD_BYTES

    @property
    def trace_buffer_size(self) -> int:
        return self.trace_record_length * self.max_traces_per_frame

    @property
    def header_buffer_size(self) -> int:
        return self.header_record_length * self.max_traces_per_frame


def header_record_length(declared_header_bytes: int) -> int:
    """Round a declared header length up to the next 32-bit word boundary.

    Args:
        declared_header_bytes: Declared bytes per header record.

    Returns:
        Padded record length, unchanged when already word aligned.

    Raises:
        SeisCloudConfigError: If the declared length is negative.
    """
    if declared_header_bytes < 0:
        raise SeisCloudConfigError(
            f"Invalid header length {declared_header_bytes}: expected a non-negative byte count."
        )
    remainder = declared_header_bytes % HEADER_WORD_BYTES
    if remainder == 0:
        return declared_header_bytes
    return declared_header_bytes + HEADER_WORD_BYTES - remainder


def build_record_layout(metadata: DatasetMetadata, codec: "TraceCodec") -> RecordLayout:
    """Derive the record layout for a dataset.

    Args:
        metadata: Dataset metadata.
        codec: Trace codec resolved for the dataset trace format.

    Returns:
        Record layout fixed for the lifetime of a session.

    Raises:
        SeisCloudConfigError: If the codec reports an unusable record length.
    """
    samples_per_trace = metadata.grid.samples_per_trace
    trace_length = codec.record_length(samples_per_trace)
    if trace_length < 1:
        raise SeisCloudConfigError(
            f"Trace codec '{codec.trace_format}' returned record length {trace_length} "
            f"for {samples_per_trace} samples. Expected at least one byte."
        )
    header_length = 0
    if metadata.has_headers and metadata.header_layout is not None:
        header_length = header_record_length(metadata.header_layout.record_length)
    return RecordLayout(
        trace_record_length=trace_length,
        header_record_length=header_length,
        max_traces_per_frame=metadata.grid.traces_per_frame,
        samples_per_trace=samples_per_trace,
    )
