"""Immutable four-axis grid model.

This module describes the regular sample x trace x frame x volume grid
that every dataset declares. Axes carry integer logical coordinates
used for storage keys and float physical coordinates for display.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import (
    FRAME_AXIS,
    GRID_DIMENSIONS,
    SAMPLE_AXIS,
    TRACE_AXIS,
    VOLUME_AXIS,
)
from core.errors import SeisCloudConfigError


@dataclass(frozen=True)
class LogicalRange:
    """Inclusive logical coordinate range with a positive-or-negative step."""

    start: int
    end: int
    step: int

    def as_tuple(self) -> tuple[int, int, int]:
        """Return the range as a ``(start, end, step)`` triple."""
        return (self.start, self.end, self.step)


@dataclass(frozen=True)
class AxisDefinition:
    """One grid axis.

    Attributes:
        label: Axis label, e.g. ``TIME`` or ``CHANNEL``.
        units: Physical units label.
        logical_origin: Logical coordinate of index zero.
        logical_delta: Non-zero logical increment between indices.
        length: Number of indices on the axis, at least one.
        physical_origin: Physical coordinate of index zero.
        physical_delta: Physical increment between indices.
    """

    label: str
    units: str
    logical_origin: int
    logical_delta: int
    length: int
    physical_origin: float = 0.0
    physical_delta: float = 1.0

    def __post_init__(self) -> None:
        if self.logical_delta == 0:
            raise SeisCloudConfigError(
                f"Invalid axis '{self.label}': logical delta must be non-zero. "
                "Declare a positive or negative increment."
            )
        if self.length < 1:
            raise SeisCloudConfigError(
                f"Invalid axis '{self.label}': length must be at least 1, got {self.length}."
            )

    @property
    def logical_end(self) -> int:
        """Logical coordinate of the last index."""
        return self.logical_origin + self.logical_delta * (self.length - 1)

    @property
    def logical_range(self) -> LogicalRange:
        """Declared ``[origin, end]`` range with the axis increment."""
        return LogicalRange(self.logical_origin, self.logical_end, self.logical_delta)


@dataclass(frozen=True)
class GridModel:
    """Validated four-dimensional dataset grid.

    Axis 0 holds samples, axis 1 traces within a frame,
    axis 2 frames, and axis 3 volumes.
    """

    axes: tuple[AxisDefinition, ...]

    def __post_init__(self) -> None:
        if len(self.axes) != GRID_DIMENSIONS:
            raise SeisCloudConfigError(
                f"Invalid grid: expected {GRID_DIMENSIONS} axes, got {len(self.axes)}. "
                "Declare sample, trace, frame, and volume axes."
            )

    def axis(self, axis_index: int) -> AxisDefinition:
        """Return one axis definition.

        Args:
            axis_index: Zero-based axis number.

        Returns:
            Axis definition.

        Raises:
            SeisCloudConfigError: If the axis number is out of range.
        """
        if not 0 <= axis_index < GRID_DIMENSIONS:
            raise SeisCloudConfigError(
                f"Invalid axis index {axis_index}: expected 0..{GRID_DIMENSIONS - 1}."
            )
        return self.axes[axis_index]

    @property
    def samples_per_trace(self) -> int:
        return self.axes[SAMPLE_AXIS].length

    @property
    def traces_per_frame(self) -> int:
        return self.axes[TRACE_AXIS].length

    @property
    def frame_count(self) -> int:
        """Total number of frames across all volumes."""
        return self.axes[FRAME_AXIS].length * self.axes[VOLUME_AXIS].length

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(axis.length for axis in self.axes)

    @property
    def frame_range(self) -> LogicalRange:
        return self.axes[FRAME_AXIS].logical_range

    @property
    def volume_range(self) -> LogicalRange:
        return self.axes[VOLUME_AXIS].logical_range

    def physical_value(self, axis_index: int, index: int) -> float:
        """Return the physical coordinate for an index on one axis."""
        axis = self.axis(axis_index)
        return axis.physical_origin + axis.physical_delta * index


def standard_grid(lengths: tuple[int, int, int, int]) -> GridModel:
    """Build a grid with zero origins and unit increments on every axis.

    Args:
        lengths: Sample, trace, frame, and volume counts.

    Returns:
        Grid model with default axis labels.
    """
    labels = ("TIME", "TRACE", "FRAME", "VOLUME")
    return GridModel(
        axes=tuple(
            AxisDefinition(label=label, units="", logical_origin=0, logical_delta=1, length=length)
            for label, length in zip(labels, lengths)
        )
    )
