"""Frame-addressed trace and header store.

This module moves fixed-layout frames of trace and header records
between caller arrays and a blob store. One object holds one
(volume, frame) pair per namespace, with a ``traceCount`` attribute
naming how many leading records are valid.

A session owns one trace buffer and one header buffer that every call
reuses. Calls are serialized by a session lock; use one session per
worker for parallel access. Buffer contents are undefined after a
failed call and are never returned to callers.
"""

from __future__ import annotations

import threading
from datetime import datetime
from enum import Enum
from pathlib import Path

import numpy as np

from codec.header_codec import (
    pack_header_words,
    read_header_field,
    restride_records,
    unpack_header_words,
)
from codec.trace_codec import TraceCodec, resolve_trace_codec
from core.addressing import derive_storage_prefix, frame_key, logical_to_index
from core.config import SeisCloudConfig
from core.constants import (
    FRAME_AXIS,
    HEADERS_NAMESPACE,
    PROPERTIES_OBJECT_NAME,
    TRACE_COUNT_METADATA_KEY,
    TRACES_NAMESPACE,
    VOLUME_AXIS,
)
from core.errors import (
    SeisCloudConfigError,
    SeisCloudFormatError,
    SeisCloudSessionError,
)
from core.grid import GridModel, LogicalRange
from core.logging_config import get_logger
from core.record_layout import RecordLayout, build_record_layout
from core.s3_uri import format_s3_uri
from core.types import BinGrid, DatasetMetadata, FrameData
from store.blob_store import BlobStore
from store.metadata_io import LocalMetadataSource, MetadataSource, RemoteMetadataSource
from store.stream_io import read_stream_into

_LOGGER = get_logger(__name__)


class SessionState(Enum):
    """Lifecycle states of a frame store session."""

    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"


class FrameStore:
    """Frame store session over one dataset.

    A session opens exactly once, serves get/put calls while open,
    and cannot be reopened after ``close``.
    """

    def __init__(self, blob_store: BlobStore, config: SeisCloudConfig | None = None) -> None:
        """Create a closed session.

        Args:
            blob_store: Backend holding dataset objects.
            config: Optional runtime configuration.
        """
        self._blob_store = blob_store
        self._config = config or SeisCloudConfig.from_env()
        self._lock = threading.Lock()
        self._state = SessionState.CLOSED
        self._was_opened = False
        self._bucket: str | None = None
        self._prefix: str | None = None
        self._metadata: DatasetMetadata | None = None
        self._layout: RecordLayout | None = None
        self._codec: TraceCodec | None = None
        self._trace_buffer: bytearray | None = None
        self._header_buffer: bytearray | None = None

    def __enter__(self) -> "FrameStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    def open(self, source: MetadataSource, bucket: str, prefix: str) -> "FrameStore":
        """Load dataset metadata and allocate session buffers.

        Args:
            source: Strategy that loads the dataset metadata.
            bucket: Bucket holding frame objects.
            prefix: Dataset storage prefix.

        Returns:
            This session, now open.

        Raises:
            SeisCloudSessionError: If the session was already opened.
            SeisCloudConfigError: If metadata is missing or invalid.
            SeisCloudStorageError: If the metadata fetch fails.
        """
        with self._lock:
            if self._state is not SessionState.CLOSED or self._was_opened:
                raise SeisCloudSessionError(
                    f"Frame store session is already {self._state.value} or was closed. "
                    "Create a new FrameStore to open another dataset."
                )
            self._state = SessionState.OPENING
            try:
                metadata = source.load()
                codec = resolve_trace_codec(metadata.trace_format, metadata.byte_order)
                layout = build_record_layout(metadata, codec)
            except BaseException:
                self._state = SessionState.CLOSED
                raise
            self._bucket = bucket
            self._prefix = prefix
            self._metadata = metadata
            self._codec = codec
            self._layout = layout
            self._trace_buffer = bytearray(layout.trace_buffer_size)
            self._header_buffer = bytearray(layout.header_buffer_size)
            self._state = SessionState.OPEN
            self._was_opened = True
        _LOGGER.info(
            "frame_store_opened",
            source=source.describe(),
            bucket=bucket,
            prefix=prefix,
            trace_format=metadata.trace_format,
            trace_record_length=layout.trace_record_length,
            header_record_length=layout.header_record_length,
            max_traces_per_frame=layout.max_traces_per_frame,
        )
        return self

    def open_remote(self, bucket: str, prefix: str) -> "FrameStore":
        """Open a dataset whose properties document lives in the blob store."""
        source = RemoteMetadataSource(
            self._blob_store, bucket, prefix, self._config.read_chunk_size
        )
        return self.open(source, bucket, prefix)

    def open_local(
        self,
        dataset_path: str | Path,
        bucket: str,
        prefix: str | None = None,
    ) -> "FrameStore":
        """Open a dataset whose properties document lives in a local dataset directory.

        Args:
            dataset_path: Local dataset directory ending with ``.js``.
            bucket: Bucket holding frame objects.
            prefix: Storage prefix; derived from the path when omitted.

        Raises:
            SeisCloudConfigError: If no prefix is given and none can be derived.
        """
        resolved_prefix = prefix or derive_storage_prefix(str(dataset_path))
        if resolved_prefix is None:
            raise SeisCloudConfigError(
                f"Could not derive a storage prefix from path {dataset_path}. "
                "Use a path like <project>/<subproject>/<name>.js or pass prefix explicitly."
            )
        source = LocalMetadataSource(Path(dataset_path) / PROPERTIES_OBJECT_NAME)
        return self.open(source, bucket, resolved_prefix)

    def close(self) -> None:
        """Release buffers and the dataset handle; safe to call repeatedly."""
        with self._lock:
            if self._state is not SessionState.OPEN:
                return
            self._trace_buffer = None
            self._header_buffer = None
            self._codec = None
            self._layout = None
            self._metadata = None
            self._state = SessionState.CLOSED
        _LOGGER.info("frame_store_closed", bucket=self._bucket, prefix=self._prefix)

    @property
    def bucket(self) -> str:
        self._require_open()
        return str(self._bucket)

    @property
    def prefix(self) -> str:
        self._require_open()
        return str(self._prefix)

    @property
    def metadata(self) -> DatasetMetadata:
        return self._require_open()

    @property
    def grid(self) -> GridModel:
        return self._require_open().grid

    @property
    def layout(self) -> RecordLayout:
        return self._require_layout()

    @property
    def volume_range(self) -> LogicalRange:
        return self.grid.volume_range

    @property
    def frame_range(self) -> LogicalRange:
        return self.grid.frame_range

    @property
    def frame_count(self) -> int:
        return self.grid.frame_count

    @property
    def shape(self) -> tuple[int, ...]:
        return self.grid.shape

    @property
    def bin_grid(self) -> BinGrid | None:
        return self._require_open().bin_grid

    @property
    def time_zero(self) -> datetime | None:
        return self._require_open().time_zero

    def allocate_trace_array(self) -> np.ndarray:
        """Return a zeroed ``(max_traces, samples)`` array in the codec sample type."""
        layout = self._require_layout()
        codec, _ = self._trace_session()
        return np.zeros(
            (layout.max_traces_per_frame, layout.samples_per_trace), dtype=codec.sample_dtype
        )

    def allocate_header_array(self) -> np.ndarray:
        """Return a zeroed ``(max_traces, header_words)`` int32 array."""
        layout = self.layout
        return np.zeros((layout.max_traces_per_frame, layout.header_words), dtype=np.int32)

    def frame_exists(self, volume: int, frame: int) -> bool:
        """Return whether the Traces object for a frame exists."""
        with self._lock:
            key = self._frame_key(TRACES_NAMESPACE, volume, frame)
            return self._blob_store.exists(self.bucket, key)

    def get_frame_traces(
        self,
        volume: int,
        frame: int,
        out: np.ndarray | None = None,
    ) -> tuple[int, np.ndarray]:
        """Read and decode the traces of one frame.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            out: Optional ``(max_traces, samples)`` destination array.

        Returns:
            Trace count and a view of the first ``trace_count`` decoded rows;
            ``(0, empty)`` when the frame was never written.

        Raises:
            SeisCloudConfigError: If ``out`` cannot hold a full frame.
            SeisCloudFormatError: If the object disagrees with the record layout.
            SeisCloudStorageError: If the blob store request fails.
        """
        with self._lock:
            layout = self._require_layout()
            codec, buffer = self._trace_session()
            samples = out if out is not None else self.allocate_trace_array()
            _check_array_shape(
                samples, layout.samples_per_trace, "trace", layout.max_traces_per_frame
            )
            key = self._frame_key(TRACES_NAMESPACE, volume, frame)
            trace_count = self._read_frame_object(key, buffer, layout.trace_record_length)
            if trace_count > 0:
                codec.decode(trace_count, memoryview(buffer), samples)
            return trace_count, samples[:trace_count]

    def put_frame_traces(
        self,
        volume: int,
        frame: int,
        trace_count: int,
        samples: np.ndarray,
    ) -> None:
        """Encode and store the leading traces of one frame.

        Overwrites any existing object at the frame key.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            trace_count: Number of valid leading traces.
            samples: Array with at least ``trace_count`` rows of samples.

        Raises:
            SeisCloudConfigError: If the trace count or array shape is invalid.
            SeisCloudStorageError: If the upload fails.
        """
        with self._lock:
            layout = self._require_layout()
            codec, trace_buffer = self._trace_session()
            samples = np.asarray(samples)
            self._check_trace_count(trace_count, samples, "trace")
            _check_array_shape(samples, layout.samples_per_trace, "trace")
            key = self._frame_key(TRACES_NAMESPACE, volume, frame)
            buffer = memoryview(trace_buffer)
            if trace_count > 0:
                codec.encode(trace_count, samples, buffer)
            self._write_frame_object(key, buffer, trace_count, layout.trace_record_length)

    def get_frame_headers(
        self,
        volume: int,
        frame: int,
        out: np.ndarray | None = None,
    ) -> tuple[int, np.ndarray]:
        """Read the 32-bit header words of one frame.

        Returns:
            Trace count and a view of the first ``trace_count`` header rows;
            ``(0, empty)`` when the frame was never written.

        Raises:
            SeisCloudConfigError: If ``out`` cannot hold a full frame.
        """
        with self._lock:
            layout, buffer = self._header_session()
            headers = out if out is not None else self.allocate_header_array()
            _check_array_shape(headers, layout.header_words, "header", layout.max_traces_per_frame)
            key = self._frame_key(HEADERS_NAMESPACE, volume, frame)
            trace_count = self._read_frame_object(key, buffer, layout.header_record_length)
            if trace_count > 0:
                unpack_header_words(
                    trace_count,
                    memoryview(buffer),
                    headers,
                    layout.header_words,
                    self.metadata.numpy_byte_order,
                )
            return trace_count, headers[:trace_count]

    def put_frame_headers(
        self,
        volume: int,
        frame: int,
        trace_count: int,
        headers: np.ndarray,
    ) -> None:
        """Store the leading 32-bit header word rows of one frame.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            trace_count: Number of valid leading header rows.
            headers: Integer array with ``header_words`` columns.
        """
        with self._lock:
            layout, header_buffer = self._header_session()
            headers = np.asarray(headers)
            self._check_trace_count(trace_count, headers, "header")
            _check_array_shape(headers, layout.header_words, "header")
            key = self._frame_key(HEADERS_NAMESPACE, volume, frame)
            buffer = memoryview(header_buffer)
            if trace_count > 0:
                pack_header_words(
                    trace_count,
                    headers,
                    buffer,
                    layout.header_words,
                    self.metadata.numpy_byte_order,
                )
            self._write_frame_object(key, buffer, trace_count, layout.header_record_length)

    def put_frame_header_records(
        self,
        volume: int,
        frame: int,
        trace_count: int,
        records: bytes | bytearray | memoryview,
        record_stride: int,
    ) -> None:
        """Store raw header records supplied with the caller's own stride.

        Records are copied one at a time into the dataset stride when the
        strides differ, truncating or zero padding each record.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            trace_count: Number of records.
            records: Packed source records.
            record_stride: Bytes per source record.

        Raises:
            SeisCloudConfigError: If the source is shorter than ``trace_count`` records.
        """
        with self._lock:
            layout, header_buffer = self._header_session()
            self._check_trace_count(trace_count, None, "header")
            source = memoryview(records).cast("B")
            if record_stride < 0 or len(source) < trace_count * record_stride:
                raise SeisCloudConfigError(
                    f"Header records hold {len(source)} bytes; expected {trace_count} records "
                    f"of {record_stride} bytes."
                )
            key = self._frame_key(HEADERS_NAMESPACE, volume, frame)
            buffer = memoryview(header_buffer)
            stride = layout.header_record_length
            if record_stride == stride:
                buffer[: trace_count * stride] = source[: trace_count * stride]
            else:
                restride_records(trace_count, source, record_stride, buffer, stride)
            self._write_frame_object(key, buffer, trace_count, stride)

    def get_frame_header_records(
        self,
        volume: int,
        frame: int,
        record_stride: int | None = None,
    ) -> tuple[int, bytes]:
        """Read raw header records, re-strided to the caller's stride.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            record_stride: Bytes per returned record; the dataset stride when omitted.

        Returns:
            Trace count and packed records.

        Raises:
            SeisCloudConfigError: If the requested stride is negative.
        """
        with self._lock:
            layout, header_buffer = self._header_session()
            stride = layout.header_record_length
            target_stride = stride if record_stride is None else record_stride
            if target_stride < 0:
                raise SeisCloudConfigError(
                    f"Invalid header record stride {target_stride}: expected a byte count."
                )
            key = self._frame_key(HEADERS_NAMESPACE, volume, frame)
            trace_count = self._read_frame_object(key, header_buffer, stride)
            source = memoryview(header_buffer)
            if target_stride == stride:
                return trace_count, bytes(source[: trace_count * stride])
            target = bytearray(trace_count * target_stride)
            restride_records(trace_count, source, stride, memoryview(target), target_stride)
            return trace_count, bytes(target)

    def get_frame_header_field(
        self,
        volume: int,
        frame: int,
        name: str,
    ) -> tuple[int, list[object]]:
        """Decode one named header field for every trace of a frame.

        Args:
            volume: Volume logical value.
            frame: Frame logical value.
            name: Field name declared in the dataset header layout.

        Returns:
            Trace count and one decoded value per trace.

        Raises:
            SeisCloudConfigError: If the field is not declared.
        """
        header_layout = self.metadata.header_layout
        if header_layout is None:
            raise SeisCloudConfigError(f"Dataset {self.prefix} does not declare trace headers.")
        header_layout.field(name)
        trace_count, records = self.get_frame_header_records(volume, frame)
        stride = self.layout.header_record_length
        byte_order = self.metadata.numpy_byte_order
        values = [
            read_header_field(
                header_layout, records[trace * stride : (trace + 1) * stride], name, byte_order
            )
            for trace in range(trace_count)
        ]
        return trace_count, values

    def get_frame(self, volume: int, frame: int) -> FrameData:
        """Read headers then traces of one frame.

        Raises:
            SeisCloudFormatError: If header and trace counts disagree.
        """
        headers = None
        header_count = 0
        if self.metadata.has_headers:
            header_count, header_rows = self.get_frame_headers(volume, frame)
            headers = header_rows
        trace_count, traces = self.get_frame_traces(volume, frame)
        if headers is not None and header_count != trace_count:
            raise SeisCloudFormatError(
                f"Frame V{volume}/F{frame} under {self.prefix} holds {header_count} headers "
                f"but {trace_count} traces. Rewrite the frame with put_frame."
            )
        return FrameData(trace_count=trace_count, traces=traces, headers=headers)

    def put_frame(
        self,
        volume: int,
        frame: int,
        trace_count: int,
        traces: np.ndarray,
        headers: np.ndarray | None = None,
    ) -> None:
        """Write headers then traces of one frame.

        Raises:
            SeisCloudConfigError: If headers are missing for a dataset that declares them.
        """
        if self.metadata.has_headers:
            if headers is None:
                raise SeisCloudConfigError(
                    "Dataset declares trace headers; pass a header array to put_frame."
                )
            self.put_frame_headers(volume, frame, trace_count, headers)
        self.put_frame_traces(volume, frame, trace_count, traces)

    def _require_open(self) -> DatasetMetadata:
        if self._state is not SessionState.OPEN or self._metadata is None:
            state = "already closed" if self._was_opened else "not open"
            raise SeisCloudSessionError(
                f"Frame store session is {state}. Open a dataset before reading or writing frames."
            )
        return self._metadata

    def _require_layout(self) -> RecordLayout:
        self._require_open()
        if self._layout is None:
            raise _session_error("has no record layout")
        return self._layout

    def _trace_session(self) -> tuple[TraceCodec, bytearray]:
        self._require_open()
        if self._codec is None or self._trace_buffer is None:
            raise _session_error("has no trace buffer")
        return self._codec, self._trace_buffer

    def _header_session(self) -> tuple[RecordLayout, bytearray]:
        metadata = self._require_open()
        if not metadata.has_headers:
            raise SeisCloudConfigError(
                f"Dataset {self._prefix} does not declare trace headers."
            )
        layout = self._require_layout()
        if self._header_buffer is None:
            raise _session_error("has no header buffer")
        return layout, self._header_buffer

    def _frame_key(self, namespace: str, volume: int, frame: int) -> str:
        grid = self._require_open().grid
        logical_to_index(grid, VOLUME_AXIS, volume)
        logical_to_index(grid, FRAME_AXIS, frame)
        return frame_key(str(self._prefix), namespace, volume, frame)

    def _check_trace_count(
        self,
        trace_count: int,
        rows: np.ndarray | None,
        kind: str,
    ) -> None:
        layout = self._require_layout()
        if not 0 <= trace_count <= layout.max_traces_per_frame:
            raise SeisCloudConfigError(
                f"Invalid {kind} count {trace_count}: expected 0..{layout.max_traces_per_frame}."
            )
        if rows is not None and rows.shape[0] < trace_count:
            raise SeisCloudConfigError(
                f"{kind.capitalize()} array has {rows.shape[0]} rows, fewer than "
                f"the {trace_count} requested."
            )

    def _read_frame_object(
        self,
        key: str,
        buffer: bytearray,
        record_length: int,
    ) -> int:
        """Stream one frame object into a session buffer.

        Returns:
            Trace count of the object, zero when it does not exist.
        """
        bucket = str(self._bucket)
        blob = self._blob_store.get(bucket, key)
        if blob is None:
            _LOGGER.debug("frame_object_missing", bucket=bucket, key=key)
            return 0
        location = format_s3_uri(bucket, key)
        with blob:
            trace_count = _parse_trace_count(blob.metadata, location)
            max_traces = self._require_layout().max_traces_per_frame
            if trace_count > max_traces:
                raise SeisCloudFormatError(
                    f"Object {location} declares {trace_count} traces; "
                    f"the dataset allows at most {max_traces} per frame."
                )
            expected_length = trace_count * record_length
            if blob.content_length != expected_length:
                raise SeisCloudFormatError(
                    f"Object {location} holds {blob.content_length} bytes but its trace count "
                    f"{trace_count} at {record_length} bytes per record requires {expected_length}."
                )
            read_stream_into(
                blob.body,
                memoryview(buffer),
                expected_length,
                self._config.read_chunk_size,
                location,
            )
        return trace_count

    def _write_frame_object(
        self,
        key: str,
        buffer: memoryview,
        trace_count: int,
        record_length: int,
    ) -> None:
        bucket = str(self._bucket)
        body = bytes(buffer[: trace_count * record_length])
        self._blob_store.put(
            bucket, key, body, {TRACE_COUNT_METADATA_KEY: str(trace_count)}
        )
        _LOGGER.debug(
            "frame_object_written",
            bucket=bucket,
            key=key,
            trace_count=trace_count,
            byte_count=len(body),
        )


def _parse_trace_count(metadata: dict[str, str], location: str) -> int:
    """Read the trace count attribute of a frame object.

    Raises:
        SeisCloudFormatError: If the attribute is missing, non-numeric, or negative.
    """
    raw_value = metadata.get(TRACE_COUNT_METADATA_KEY)
    if raw_value is None:
        # S3 returns user metadata names lower-cased.
        raw_value = metadata.get(TRACE_COUNT_METADATA_KEY.lower())
    if raw_value is None:
        raise SeisCloudFormatError(
            f"Object {location} has no '{TRACE_COUNT_METADATA_KEY}' metadata attribute. "
            "Rewrite the frame to restore it."
        )
    try:
        trace_count = int(raw_value)
    except ValueError as error:
        raise SeisCloudFormatError(
            f"Object {location} has non-numeric '{TRACE_COUNT_METADATA_KEY}' "
            f"attribute '{raw_value}'."
        ) from error
    if trace_count < 0:
        raise SeisCloudFormatError(
            f"Object {location} has negative '{TRACE_COUNT_METADATA_KEY}' attribute {trace_count}."
        )
    return trace_count


def _check_array_shape(
    array: np.ndarray,
    columns: int,
    kind: str,
    min_rows: int = 0,
) -> None:
    if array.ndim != 2 or array.shape[1] != columns:
        raise SeisCloudConfigError(
            f"Invalid {kind} array shape {array.shape}: expected 2-D with {columns} columns."
        )
    if array.shape[0] < min_rows:
        raise SeisCloudConfigError(
            f"{kind.capitalize()} array has {array.shape[0]} rows; a full frame "
            f"needs {min_rows}. Use the session allocate helpers to size it."
        )


def _session_error(detail: str) -> SeisCloudSessionError:
    return SeisCloudSessionError(
        f"Frame store session {detail}. Open a dataset before reading or writing frames."
    )
