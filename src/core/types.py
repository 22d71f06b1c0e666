"""Shared typed models.

This module defines immutable data models used by the metadata,
codec, and frame store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

import numpy as np

from core.constants import BIG_ENDIAN, PROPERTIES_FORMAT_VERSION, SUPPORTED_BYTE_ORDERS
from core.errors import SeisCloudConfigError
from core.grid import GridModel

ByteOrder = Literal["BIG_ENDIAN", "LITTLE_ENDIAN"]
HeaderFieldFormat = Literal["INTEGER", "LONG", "FLOAT", "DOUBLE", "BYTESTRING"]

HEADER_FIELD_SIZES: dict[str, int] = {
    "INTEGER": 4,
    "LONG": 8,
    "FLOAT": 4,
    "DOUBLE": 8,
    "BYTESTRING": 1,
}


@dataclass(frozen=True)
class HeaderField:
    """One named field inside a fixed-width trace header record.

    Attributes:
        name: Field name, e.g. ``SOU_XD``.
        format: Element format.
        offset: Byte offset of the field within the record.
        count: Number of elements.
        description: Free-form description.
    """

    name: str
    format: HeaderFieldFormat
    offset: int
    count: int = 1
    description: str = ""

    @property
    def byte_length(self) -> int:
        return HEADER_FIELD_SIZES[self.format] * self.count


@dataclass(frozen=True)
class HeaderLayout:
    """Declared header record description.

    Attributes:
        record_length: Declared header bytes per trace before word padding.
        fields: Named fields packed inside the record.
    """

    record_length: int
    fields: tuple[HeaderField, ...] = ()

    def __post_init__(self) -> None:
        if self.record_length < 0:
            raise SeisCloudConfigError(
                f"Invalid header layout: record length must be non-negative, "
                f"got {self.record_length}."
            )
        for header_field in self.fields:
            if header_field.format not in HEADER_FIELD_SIZES:
                raise SeisCloudConfigError(
                    f"Invalid header field '{header_field.name}': unsupported format "
                    f"'{header_field.format}'. Use one of {tuple(HEADER_FIELD_SIZES)}."
                )
            end = header_field.offset + header_field.byte_length
            if header_field.offset < 0 or end > self.record_length:
                raise SeisCloudConfigError(
                    f"Invalid header field '{header_field.name}': bytes "
                    f"[{header_field.offset}, {end}) exceed record length {self.record_length}."
                )

    def field(self, name: str) -> HeaderField:
        """Look up a header field by name.

        Raises:
            SeisCloudConfigError: If the field is not declared.
        """
        for header_field in self.fields:
            if header_field.name == name:
                return header_field
        raise SeisCloudConfigError(
            f"Header field '{name}' is not declared. "
            f"Available fields: {[item.name for item in self.fields]}."
        )


@dataclass(frozen=True)
class BinGrid:
    """Optional map-view geometry of the frame/trace plane."""

    origin_x: float
    origin_y: float
    delta_x: float
    delta_y: float
    azimuth: float = 0.0


@dataclass(frozen=True)
class DatasetMetadata:
    """Declarative grid and format description of one dataset.

    Attributes:
        trace_format: Trace sample format name resolved to a trace codec.
        byte_order: Byte order of stored traces and headers.
        grid: Four-axis grid model.
        has_headers: Whether frames carry a Headers object.
        header_layout: Header record description when headers are present.
        version: Properties document format version.
        bin_grid: Optional map-view geometry.
        time_zero: Optional reference time of the first sample.
        data_type: Optional free-form data type label.
    """

    trace_format: str
    byte_order: ByteOrder
    grid: GridModel
    has_headers: bool = False
    header_layout: HeaderLayout | None = None
    version: str = PROPERTIES_FORMAT_VERSION
    bin_grid: BinGrid | None = None
    time_zero: datetime | None = None
    data_type: str | None = None

    def __post_init__(self) -> None:
        if self.byte_order not in SUPPORTED_BYTE_ORDERS:
            raise SeisCloudConfigError(
                f"Invalid byte order '{self.byte_order}': expected one of {SUPPORTED_BYTE_ORDERS}."
            )
        if self.has_headers and self.header_layout is None:
            raise SeisCloudConfigError(
                "Invalid dataset metadata: has_headers is set but no header layout is declared. "
                "Add a header layout or clear has_headers."
            )

    @property
    def numpy_byte_order(self) -> str:
        """Return the numpy dtype byte order character."""
        return ">" if self.byte_order == BIG_ENDIAN else "<"


@dataclass(frozen=True)
class FrameData:
    """Traces and optional headers read from one frame.

    Attributes:
        trace_count: Number of valid traces in the frame.
        traces: Sample array with ``trace_count`` rows.
        headers: Header word array with ``trace_count`` rows, if any.
    """

    trace_count: int
    traces: np.ndarray
    headers: np.ndarray | None = field(default=None)
