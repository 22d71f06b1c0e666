"""Unit tests for storage keys and logical range arithmetic."""

from __future__ import annotations

import pytest

from core.addressing import (
    derive_storage_prefix,
    frame_key,
    index_to_grid,
    index_to_logical,
    logical_to_index,
    properties_key,
    restrict_range,
)
from core.constants import FRAME_AXIS, FRAME_NAMESPACES, VOLUME_AXIS
from core.errors import SeisCloudConfigError, SeisCloudRangeError
from core.grid import AxisDefinition, GridModel, LogicalRange
from tests.fixture_paths import sample_grid


def test_frame_key_embeds_logical_values() -> None:
    """Frame keys should embed namespace, volume, and frame logical values."""
    assert frame_key("proj/sub/line12", "Traces", 11, 102) == "proj/sub/line12/Traces/V11/F102"


def test_frame_key_uses_headers_namespace() -> None:
    """Header keys should share the layout of trace keys."""
    assert frame_key("p", "Headers", 1, 7) == "p/Headers/V1/F7"


def test_frame_key_rejects_unknown_namespace() -> None:
    """Key construction should fail for an unknown namespace."""
    with pytest.raises(SeisCloudConfigError):
        frame_key("p", "Samples", 1, 1)


def test_properties_key_names_properties_document() -> None:
    """Properties key should live directly under the dataset prefix."""
    assert properties_key("proj/sub/line12") == "proj/sub/line12/JscFileProperties.json"


def test_index_to_logical_applies_origin_and_delta() -> None:
    """Index conversion should apply the axis origin and increment."""
    assert index_to_logical(sample_grid(), FRAME_AXIS, 2) == 104


def test_logical_to_index_inverts_index_to_logical() -> None:
    """Logical conversion should return the matching zero-based index."""
    assert logical_to_index(sample_grid(), FRAME_AXIS, 102) == 1


def test_logical_to_index_rejects_off_lattice_value() -> None:
    """Logical conversion should fail between lattice points."""
    with pytest.raises(SeisCloudRangeError):
        logical_to_index(sample_grid(), FRAME_AXIS, 101)


def test_logical_to_index_rejects_out_of_bounds_value() -> None:
    """Logical conversion should fail beyond the declared axis."""
    with pytest.raises(SeisCloudRangeError):
        logical_to_index(sample_grid(), VOLUME_AXIS, 13)


def test_index_to_grid_converts_every_axis() -> None:
    """Grid conversion should map one index per axis to logical values."""
    assert index_to_grid(sample_grid(), (0, 0, 1, 2)) == (0, 1, 102, 12)


def test_restrict_range_returns_declared_range_for_empty_request() -> None:
    """The all-zero request should select the whole axis."""
    grid = sample_grid()

    assert restrict_range(grid, FRAME_AXIS, LogicalRange(0, 0, 0)) == LogicalRange(100, 104, 2)


def test_restrict_range_clips_to_declared_bounds() -> None:
    """Accepted requests should be clipped to the axis bounds."""
    grid = sample_grid()

    restricted = restrict_range(grid, FRAME_AXIS, LogicalRange(98, 200, 2))

    assert restricted == LogicalRange(100, 104, 2)


def test_restrict_range_keeps_requested_step() -> None:
    """Accepted requests should keep a step that is a multiple of the increment."""
    grid = sample_grid()

    restricted = restrict_range(grid, FRAME_AXIS, LogicalRange(100, 104, 4))

    assert restricted == LogicalRange(100, 104, 4)


@pytest.mark.parametrize(
    "requested",
    [
        LogicalRange(101, 104, 2),
        LogicalRange(106, 110, 2),
        LogicalRange(104, 100, 2),
        LogicalRange(90, 98, 2),
        LogicalRange(100, 104, 1),
        LogicalRange(100, 104, 3),
    ],
)
def test_restrict_range_rejects_invalid_requests(requested: LogicalRange) -> None:
    """Misaligned, disjoint, reversed, or finer-than-axis requests should be rejected."""
    assert restrict_range(sample_grid(), FRAME_AXIS, requested) is None


def _mixed_grid() -> GridModel:
    return GridModel(
        axes=(
            AxisDefinition("TIME", "ms", logical_origin=0, logical_delta=4, length=5),
            AxisDefinition("CHANNEL", "", logical_origin=10, logical_delta=-2, length=4),
            AxisDefinition("FRAME", "", logical_origin=101, logical_delta=2, length=3),
            AxisDefinition("VOLUME", "", logical_origin=-3, logical_delta=1, length=2),
        )
    )


@pytest.mark.parametrize(
    ("axis_index", "index"),
    [
        (axis_index, index)
        for axis_index, axis in enumerate(_mixed_grid().axes)
        for index in range(axis.length)
    ],
)
def test_logical_to_index_round_trips_every_index(axis_index: int, index: int) -> None:
    """Every index on every axis should survive a trip through its logical value."""
    grid = _mixed_grid()

    logical = index_to_logical(grid, axis_index, index)

    assert logical_to_index(grid, axis_index, logical) == index


def test_frame_keys_are_distinct_across_namespaces_volumes_and_frames() -> None:
    """Distinct (namespace, volume, frame) triples should never share a key."""
    triples = [
        (namespace, volume, frame)
        for namespace in FRAME_NAMESPACES
        for volume in range(13)
        for frame in range(13)
    ]

    keys = {frame_key("p", namespace, volume, frame) for namespace, volume, frame in triples}

    assert len(keys) == len(triples)


def test_restrict_range_snaps_end_onto_lattice() -> None:
    """An end between lattice points should snap down to the previous frame."""
    restricted = restrict_range(sample_grid(), FRAME_AXIS, LogicalRange(100, 103, 2))

    assert restricted == LogicalRange(100, 102, 2)


def test_restrict_range_snaps_start_onto_lattice() -> None:
    """A start between lattice points should snap up to the next frame."""
    restricted = restrict_range(_mixed_grid(), FRAME_AXIS, LogicalRange(102, 106, 2))

    assert restricted == LogicalRange(103, 105, 2)


@pytest.mark.parametrize(
    ("requested", "expected"),
    [
        (LogicalRange(104, 104, 2), LogicalRange(104, 104, 2)),
        (LogicalRange(98, 100, 2), LogicalRange(100, 100, 2)),
    ],
)
def test_restrict_range_accepts_requests_touching_one_bound(
    requested: LogicalRange,
    expected: LogicalRange,
) -> None:
    """Requests that meet the axis only at its first or last frame should be kept."""
    assert restrict_range(sample_grid(), FRAME_AXIS, requested) == expected


@pytest.mark.parametrize(
    "requested",
    [LogicalRange(106, 106, 2), LogicalRange(96, 98, 2)],
)
def test_restrict_range_rejects_requests_one_step_outside(requested: LogicalRange) -> None:
    """Requests one increment beyond either bound should be rejected."""
    assert restrict_range(sample_grid(), FRAME_AXIS, requested) is None


def test_derive_storage_prefix_uses_two_parent_directories() -> None:
    """Prefix should join grandparent, parent, and base name without suffix."""
    assert derive_storage_prefix("/data/project/survey/line12.js") == "project/survey/line12"


def test_derive_storage_prefix_accepts_relative_paths() -> None:
    """Relative paths with two parents should derive a prefix."""
    assert derive_storage_prefix("project/survey/line12.js") == "project/survey/line12"


@pytest.mark.parametrize(
    "dataset_path",
    ["/data/project/survey/line12.dat", "survey/line12.js", "", None],
)
def test_derive_storage_prefix_returns_none_for_unusable_paths(dataset_path) -> None:
    """Paths with the wrong suffix or too few parents should yield no prefix."""
    assert derive_storage_prefix(dataset_path) is None
