"""Dataset properties document persistence.

This module serializes dataset metadata to the JSON properties document
and loads it back through interchangeable local and remote sources.
The frame store picks a source at open time.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Protocol, cast

from core.addressing import properties_key
from core.constants import DEFAULT_READ_CHUNK_SIZE, PROPERTIES_FORMAT_VERSION, YAML_SUFFIXES
from core.errors import SeisCloudConfigError, SeisCloudDependencyError, SeisCloudStorageError
from core.grid import AxisDefinition, GridModel
from core.logging_config import get_logger
from core.s3_uri import format_s3_uri
from core.types import BinGrid, DatasetMetadata, HeaderField, HeaderLayout
from store.blob_store import BlobStore
from store.stream_io import read_stream_bytes

_LOGGER = get_logger(__name__)


class MetadataSource(Protocol):
    """Strategy that loads dataset metadata from one location."""

    def load(self) -> DatasetMetadata:
        """Load and validate the dataset metadata."""
        ...

    def describe(self) -> str:
        """Return a human readable location for messages."""
        ...


class LocalMetadataSource:
    """Metadata document stored on the local filesystem."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    def describe(self) -> str:
        return str(self._path)

    def load(self) -> DatasetMetadata:
        """Read a JSON or YAML properties document from disk.

        Raises:
            SeisCloudConfigError: If the file is missing or invalid.
        """
        if not self._path.is_file():
            raise SeisCloudConfigError(
                f"Dataset properties not found at {self._path}. "
                "Provide the path of an existing properties document."
            )
        try:
            raw_bytes = self._path.read_bytes()
        except OSError as error:
            raise SeisCloudConfigError(
                f"Failed to read dataset properties at {self._path}: {error}."
            ) from error
        document = _decode_document(raw_bytes, self.describe())
        if self._path.suffix.lower() in YAML_SUFFIXES:
            payload = _parse_yaml_text(document, self.describe())
        else:
            payload = _parse_json_text(document, self.describe())
        return metadata_from_dict(payload, self.describe())


class RemoteMetadataSource:
    """Metadata document stored in the blob store under a dataset prefix."""

    def __init__(
        self,
        blob_store: BlobStore,
        bucket: str,
        prefix: str,
        chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        self._blob_store = blob_store
        self._bucket = bucket
        self._key = properties_key(prefix)
        self._chunk_size = chunk_size

    def describe(self) -> str:
        return format_s3_uri(self._bucket, self._key)

    def load(self) -> DatasetMetadata:
        """Fetch and parse the properties document.

        The body is read until end-of-stream, so chunked transfers
        deliver the whole document.

        Raises:
            SeisCloudConfigError: If the document is missing or invalid.
            SeisCloudStorageError: If the blob store request fails.
        """
        blob = self._blob_store.get(self._bucket, self._key)
        if blob is None:
            raise SeisCloudConfigError(
                f"Dataset properties not found at {self.describe()}. "
                "Create the dataset before opening it."
            )
        with blob:
            raw_bytes = read_stream_bytes(blob.body, self._chunk_size, self.describe())
        document = _decode_document(raw_bytes, self.describe())
        payload = _parse_json_text(document, self.describe())
        return metadata_from_dict(payload, self.describe())


def write_remote_metadata(
    blob_store: BlobStore,
    bucket: str,
    prefix: str,
    metadata: DatasetMetadata,
    overwrite: bool = False,
) -> str:
    """Store the properties document for a dataset.

    Args:
        blob_store: Target blob store.
        bucket: Target bucket.
        prefix: Dataset prefix.
        metadata: Metadata to store.
        overwrite: Replace an existing document when True.

    Returns:
        Key of the stored document.

    Raises:
        SeisCloudStorageError: If a document exists and overwrite is False.
    """
    key = properties_key(prefix)
    if not overwrite and blob_store.exists(bucket, key):
        raise SeisCloudStorageError(
            f"Dataset properties already exist at {format_s3_uri(bucket, key)}. "
            "Pass overwrite=True to replace them."
        )
    blob_store.put(bucket, key, metadata_to_json(metadata).encode("utf-8"), {})
    _LOGGER.info("dataset_properties_written", bucket=bucket, key=key, overwrite=overwrite)
    return key


def write_local_metadata(path: Path, metadata: DatasetMetadata) -> None:
    """Write a properties document to a local file."""
    Path(path).write_text(metadata_to_json(metadata), encoding="utf-8")


def metadata_to_json(metadata: DatasetMetadata) -> str:
    """Render metadata as the JSON properties document."""
    return json.dumps(metadata_to_dict(metadata), indent=2, sort_keys=True) + "\n"


def metadata_to_dict(metadata: DatasetMetadata) -> dict[str, Any]:
    """Serialize metadata into a JSON-safe dictionary."""
    payload: dict[str, Any] = {
        "version": metadata.version,
        "trace_format": metadata.trace_format,
        "byte_order": metadata.byte_order,
        "has_headers": metadata.has_headers,
        "grid": {"axes": [_axis_to_dict(axis) for axis in metadata.grid.axes]},
        "header_layout": None,
        "bin_grid": None,
        "time_zero": metadata.time_zero.isoformat() if metadata.time_zero else None,
        "data_type": metadata.data_type,
    }
    if metadata.header_layout is not None:
        payload["header_layout"] = {
            "record_length": metadata.header_layout.record_length,
            "fields": [
                {
                    "name": item.name,
                    "format": item.format,
                    "offset": item.offset,
                    "count": item.count,
                    "description": item.description,
                }
                for item in metadata.header_layout.fields
            ],
        }
    if metadata.bin_grid is not None:
        payload["bin_grid"] = {
            "origin_x": metadata.bin_grid.origin_x,
            "origin_y": metadata.bin_grid.origin_y,
            "delta_x": metadata.bin_grid.delta_x,
            "delta_y": metadata.bin_grid.delta_y,
            "azimuth": metadata.bin_grid.azimuth,
        }
    return payload


def metadata_from_dict(payload: Mapping[str, Any], source: str = "<memory>") -> DatasetMetadata:
    """Deserialize and validate a properties payload.

    Args:
        payload: Parsed properties document.
        source: Location used in error messages.

    Returns:
        Typed dataset metadata.

    Raises:
        SeisCloudConfigError: If required fields are missing or invalid.
    """
    try:
        grid_payload = _expect_mapping(payload.get("grid"), "grid", source)
        axes_payload = grid_payload.get("axes")
        if not isinstance(axes_payload, list):
            raise SeisCloudConfigError(
                f"Invalid dataset properties at {source}: 'grid.axes' must be a list."
            )
        grid = GridModel(axes=tuple(_axis_from_dict(item, source) for item in axes_payload))
        header_payload = payload.get("header_layout")
        bin_grid_payload = payload.get("bin_grid")
        time_zero_value = payload.get("time_zero")
        return DatasetMetadata(
            trace_format=str(_required(payload, "trace_format", source)),
            byte_order=cast(Any, str(_required(payload, "byte_order", source))),
            grid=grid,
            has_headers=_optional_bool(payload, "has_headers", source),
            header_layout=(
                _header_layout_from_dict(header_payload, source) if header_payload else None
            ),
            version=str(payload.get("version") or PROPERTIES_FORMAT_VERSION),
            bin_grid=_bin_grid_from_dict(bin_grid_payload, source) if bin_grid_payload else None,
            time_zero=datetime.fromisoformat(str(time_zero_value)) if time_zero_value else None,
            data_type=str(payload["data_type"]) if payload.get("data_type") else None,
        )
    except (TypeError, ValueError) as error:
        raise SeisCloudConfigError(
            f"Invalid dataset properties at {source}: {error}. Fix the document and retry."
        ) from error


def _axis_to_dict(axis: AxisDefinition) -> dict[str, Any]:
    return {
        "label": axis.label,
        "units": axis.units,
        "logical_origin": axis.logical_origin,
        "logical_delta": axis.logical_delta,
        "length": axis.length,
        "physical_origin": axis.physical_origin,
        "physical_delta": axis.physical_delta,
    }


def _axis_from_dict(value: object, source: str) -> AxisDefinition:
    payload = _expect_mapping(value, "grid axis", source)
    return AxisDefinition(
        label=str(payload.get("label", "")),
        units=str(payload.get("units", "")),
        logical_origin=int(_required(payload, "logical_origin", source)),
        logical_delta=int(_required(payload, "logical_delta", source)),
        length=int(_required(payload, "length", source)),
        physical_origin=float(payload.get("physical_origin", 0.0)),
        physical_delta=float(payload.get("physical_delta", 1.0)),
    )


def _header_layout_from_dict(value: object, source: str) -> HeaderLayout:
    payload = _expect_mapping(value, "header_layout", source)
    fields_payload = payload.get("fields", [])
    if not isinstance(fields_payload, list):
        raise SeisCloudConfigError(
            f"Invalid dataset properties at {source}: 'header_layout.fields' must be a list."
        )
    fields = []
    for item in fields_payload:
        field_payload = _expect_mapping(item, "header field", source)
        fields.append(
            HeaderField(
                name=str(_required(field_payload, "name", source)),
                format=cast(Any, str(_required(field_payload, "format", source))),
                offset=int(_required(field_payload, "offset", source)),
                count=int(field_payload.get("count", 1)),
                description=str(field_payload.get("description", "")),
            )
        )
    return HeaderLayout(
        record_length=int(_required(payload, "record_length", source)),
        fields=tuple(fields),
    )


def _bin_grid_from_dict(value: object, source: str) -> BinGrid:
    payload = _expect_mapping(value, "bin_grid", source)
    return BinGrid(
        origin_x=float(_required(payload, "origin_x", source)),
        origin_y=float(_required(payload, "origin_y", source)),
        delta_x=float(_required(payload, "delta_x", source)),
        delta_y=float(_required(payload, "delta_y", source)),
        azimuth=float(payload.get("azimuth", 0.0)),
    )


def _required(payload: Mapping[str, Any], name: str, source: str) -> Any:
    if payload.get(name) is None:
        raise SeisCloudConfigError(
            f"Invalid dataset properties at {source}: missing required field '{name}'."
        )
    return payload[name]


def _expect_mapping(value: object, context: str, source: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    raise SeisCloudConfigError(
        f"Invalid dataset properties at {source}: expected mapping for {context}, "
        f"got {type(value).__name__}."
    )


def _parse_json_text(text: str, source: str) -> Mapping[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise SeisCloudConfigError(
            f"Failed to parse dataset properties at {source}: {error.msg}. "
            "Recreate the properties document."
        ) from error
    return _expect_mapping(payload, "document root", source)


def _parse_yaml_text(text: str, source: str) -> Mapping[str, Any]:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise SeisCloudDependencyError(
            "YAML dataset descriptions require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    try:
        payload = cast(object, yaml.safe_load(text))
    except Exception as error:
        raise SeisCloudConfigError(
            f"Failed to parse YAML dataset description at {source}: {error}. "
            "Fix YAML syntax and retry."
        ) from error
    return _expect_mapping(payload, "document root", source)


def _optional_bool(payload: Mapping[str, Any], name: str, source: str) -> bool:
    value = payload.get(name, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SeisCloudConfigError(
            f"Invalid dataset properties at {source}: '{name}' must be true or false, "
            f"got {value!r}."
        )
    return value


def _decode_document(raw_bytes: bytes, source: str) -> str:
    try:
        return raw_bytes.decode("utf-8")
    except UnicodeDecodeError as error:
        raise SeisCloudConfigError(
            f"Failed to decode dataset properties at {source}: {error}. "
            "Save the properties document as UTF-8."
        ) from error
