"""Public SDK surface for SeisCloud.

This module provides a stable import path for library users.
It re-exports the client, session, and typed models.
"""

from __future__ import annotations

from codec.header_codec import read_header_field
from codec.trace_codec import TraceCodec, register_trace_codec, supported_trace_formats
from core.addressing import (
    derive_storage_prefix,
    frame_key,
    index_to_logical,
    logical_to_index,
    restrict_range,
)
from core.config import SeisCloudConfig
from core.errors import (
    SeisCloudConfigError,
    SeisCloudError,
    SeisCloudFormatError,
    SeisCloudRangeError,
    SeisCloudSessionError,
    SeisCloudStorageError,
)
from core.grid import AxisDefinition, GridModel, LogicalRange, standard_grid
from core.record_layout import RecordLayout, header_record_length
from core.types import BinGrid, DatasetMetadata, FrameData, HeaderField, HeaderLayout
from store.dataset_sdk import SeisCloudClient, is_local_dataset
from store.frame_store import FrameStore, SessionState
from store.local_blob_store import LocalBlobStore
from store.s3_blob_store import S3BlobStore

__all__ = [
    "AxisDefinition",
    "BinGrid",
    "DatasetMetadata",
    "FrameData",
    "FrameStore",
    "GridModel",
    "HeaderField",
    "HeaderLayout",
    "LocalBlobStore",
    "LogicalRange",
    "RecordLayout",
    "S3BlobStore",
    "SeisCloudClient",
    "SeisCloudConfig",
    "SeisCloudConfigError",
    "SeisCloudError",
    "SeisCloudFormatError",
    "SeisCloudRangeError",
    "SeisCloudSessionError",
    "SeisCloudStorageError",
    "SessionState",
    "TraceCodec",
    "derive_storage_prefix",
    "frame_key",
    "header_record_length",
    "index_to_logical",
    "is_local_dataset",
    "logical_to_index",
    "read_header_field",
    "register_trace_codec",
    "restrict_range",
    "standard_grid",
    "supported_trace_formats",
]
