"""Storage key construction and logical/index arithmetic.

This module maps logical (volume, frame) coordinates onto stable
object keys and converts between logical values and array indices.
Keys embed logical values directly so they never depend on how
an in-memory index is anchored.
"""

from __future__ import annotations

from pathlib import PurePath

from core.constants import DATASET_PATH_SUFFIX, FRAME_NAMESPACES, PROPERTIES_OBJECT_NAME
from core.errors import SeisCloudConfigError, SeisCloudRangeError
from core.grid import GridModel, LogicalRange

_EMPTY_RANGE = LogicalRange(0, 0, 0)


def frame_key(prefix: str, namespace: str, volume: int, frame: int) -> str:
    """Build the storage key for one frame object.

    Args:
        prefix: Dataset storage prefix, already key-safe.
        namespace: ``Traces`` or ``Headers``.
        volume: Volume logical value.
        frame: Frame logical value.

    Returns:
        Key of the form ``<prefix>/<namespace>/V<volume>/F<frame>``.

    Raises:
        SeisCloudConfigError: If the namespace is unknown.
    """
    if namespace not in FRAME_NAMESPACES:
        raise SeisCloudConfigError(
            f"Unknown frame namespace '{namespace}': expected one of {FRAME_NAMESPACES}."
        )
    return f"{prefix}/{namespace}/V{int(volume)}/F{int(frame)}"


def properties_key(prefix: str) -> str:
    """Return the key of the dataset properties document under a prefix."""
    return f"{prefix}/{PROPERTIES_OBJECT_NAME}"


def index_to_logical(grid: GridModel, axis_index: int, index: int) -> int:
    """Convert a zero-based index into a logical value on one axis."""
    axis = grid.axis(axis_index)
    return axis.logical_origin + axis.logical_delta * index


def logical_to_index(grid: GridModel, axis_index: int, value: int) -> int:
    """Convert a logical value into a zero-based index on one axis.

    Args:
        grid: Dataset grid.
        axis_index: Zero-based axis number.
        value: Logical coordinate.

    Returns:
        Zero-based index of the value.

    Raises:
        SeisCloudRangeError: If the value is off the axis lattice or outside its length.
    """
    axis = grid.axis(axis_index)
    offset = value - axis.logical_origin
    if offset % axis.logical_delta != 0:
        raise SeisCloudRangeError(
            f"Logical value {value} is not on axis '{axis.label}': "
            f"origin {axis.logical_origin} with increment {axis.logical_delta}."
        )
    index = offset // axis.logical_delta
    if not 0 <= index < axis.length:
        raise SeisCloudRangeError(
            f"Logical value {value} is outside axis '{axis.label}' "
            f"range [{axis.logical_origin}, {axis.logical_end}]."
        )
    return index


def index_to_grid(grid: GridModel, indices: tuple[int, ...]) -> tuple[int, ...]:
    """Convert one index per axis into the matching logical values."""
    return tuple(
        index_to_logical(grid, axis_index, index) for axis_index, index in enumerate(indices)
    )


def axis_range(grid: GridModel, axis_index: int) -> LogicalRange:
    """Return the declared logical range of one axis."""
    return grid.axis(axis_index).logical_range


def restrict_range(
    grid: GridModel,
    axis_index: int,
    requested: LogicalRange,
) -> LogicalRange | None:
    """Validate a requested logical range and clip it to the declared axis.

    The all-zero range selects the whole axis. Any other request is
    rejected as a whole when it violates one of the alignment or bounds
    rules. Accepted requests are clipped to the declared bounds and
    snapped inward onto the axis lattice, so both ends are valid
    logical values. Intended for axes with a positive increment.

    Args:
        grid: Dataset grid.
        axis_index: Zero-based axis number.
        requested: Requested ``(start, end, step)`` range.

    Returns:
        Clipped range, or ``None`` when the request is invalid.
    """
    declared = axis_range(grid, axis_index)
    if requested == _EMPTY_RANGE:
        return declared
    increment = declared.step
    if requested.start % increment != 0:
        return None
    if requested.start > declared.end:
        return None
    if requested.end < requested.start:
        return None
    if requested.end < declared.start:
        return None
    if requested.step < increment or requested.step % increment != 0:
        return None
    # Bounds snap inward onto the declared lattice.
    start_offset = max(declared.start, requested.start) - declared.start
    end_offset = min(declared.end, requested.end) - declared.start
    start = declared.start + -(-start_offset // increment) * increment
    end = declared.start + (end_offset // increment) * increment
    if end < start:
        return None
    return LogicalRange(start=start, end=end, step=requested.step)


def derive_storage_prefix(dataset_path: str | None) -> str | None:
    """Derive a default storage prefix from a local dataset path.

    ``/data/project/survey/line12.js`` becomes ``project/survey/line12``.

    Args:
        dataset_path: Local dataset path ending with ``.js``.

    Returns:
        ``grandparent/parent/name`` prefix, or ``None`` when the path has the
        wrong suffix or fewer than two parent directories.
    """
    if not dataset_path:
        return None
    path = PurePath(dataset_path)
    if not path.name.endswith(DATASET_PATH_SUFFIX):
        return None
    base_name = path.name[: -len(DATASET_PATH_SUFFIX)]
    parent_names = [parent.name for parent in path.parents if parent.name]
    if len(parent_names) < 2 or not base_name:
        return None
    return f"{parent_names[1]}/{parent_names[0]}/{base_name}"
