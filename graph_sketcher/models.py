"""
Core data model for the graph sketcher.

Curves live in pixel space while being edited; the exchange format (see
``codec``) carries the same curves in normalized Cartesian coordinates.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

FloatArray = NDArray[np.floating[Any]]
Point = tuple[float, float]

# Names accepted by the colour selector, in palette order.
COLOR_NAMES: tuple[str, ...] = ("Blue", "Orange", "Green", "Pink", "Red", "Purple")


def empty_points() -> FloatArray:
    return np.empty((0, 2), dtype=np.float64)


def as_points(values: Any) -> FloatArray:
    """Coerce a sequence of (x, y) pairs into an ``(N, 2)`` float64 array."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return empty_points()
    return arr.reshape(-1, 2).copy()


# ===========================================================================
# Errors
# ===========================================================================

class SketchError(Exception):
    pass


class InvalidCanvasError(SketchError, ValueError):
    pass


class MissingSelectionError(SketchError):
    pass


class EmptyHistoryError(SketchError):
    pass


# ===========================================================================
# Configuration
# ===========================================================================

@dataclass(frozen=True, slots=True)
class SketchConfig:
    curve_limit: int = 3
    detect_radius: float = 10.0
    knot_detect_extra: float = 10.0
    sample_interval: float = 10.0
    num_samples: int = 100
    close_threshold: float = 15.0
    axis_snap: float = 15.0
    branch_gap: float = 200.0
    turn_cutoff: int = 10
    turn_window: int = 5
    turn_merge: float = 5.0
    x_buffer: float = 30.0
    y_buffer: float = 15.0
    min_stretch_range: float = 30.0
    edge_handle_offset: float = 3.0
    rotate_handle_offset: float = 16.0
    delete_fraction: float = 0.5
    max_canvas: int = 5000
    export_decimals: int = 4
    allow_multi_valued: bool = False

    def __post_init__(self) -> None:
        if self.curve_limit < 1:
            raise ValueError(f"curve_limit must be >= 1, got {self.curve_limit}")
        if self.detect_radius <= 0:
            raise ValueError(f"detect_radius must be positive, got {self.detect_radius}")
        if self.sample_interval <= 0:
            raise ValueError(f"sample_interval must be positive, got {self.sample_interval}")
        if self.num_samples < 2:
            raise ValueError(f"num_samples must be >= 2, got {self.num_samples}")
        if self.turn_cutoff < 0 or self.turn_window < 1:
            raise ValueError(
                f"invalid turning point window: cutoff={self.turn_cutoff}, "
                f"window={self.turn_window}"
            )
        if self.turn_merge < 0:
            raise ValueError(f"turn_merge must be >= 0, got {self.turn_merge}")
        if not (0.0 <= self.delete_fraction <= 1.0):
            raise ValueError(f"delete_fraction must be in [0, 1], got {self.delete_fraction}")
        if self.max_canvas <= 0:
            raise ValueError(f"max_canvas must be positive, got {self.max_canvas}")
        if not (0 <= self.export_decimals <= 10):
            raise ValueError(f"export_decimals must be in [0, 10], got {self.export_decimals}")


DEFAULT_CONFIG = SketchConfig()


# ===========================================================================
# Canvas
# ===========================================================================

@dataclass(frozen=True, slots=True)
class CanvasProperties:
    width: float
    height: float
    max_size: float = DEFAULT_CONFIG.max_canvas

    def __post_init__(self) -> None:
        for name, value in (("width", self.width), ("height", self.height)):
            if not (0 < value <= self.max_size):
                raise InvalidCanvasError(
                    f"canvas {name} must be in (0, {self.max_size}], got {value}"
                )

    @property
    def axis_length(self) -> float:
        return float(min(self.width, self.height))

    @property
    def center(self) -> Point:
        return self.width / 2.0, self.height / 2.0

    @property
    def plot_start(self) -> Point:
        cx, cy = self.center
        half = self.axis_length / 2.0
        return cx - half, cy - half

    @property
    def plot_end(self) -> Point:
        cx, cy = self.center
        half = self.axis_length / 2.0
        return cx + half, cy + half

    def contains(self, x: float, y: float) -> bool:
        """True when (x, y) lies inside the drawable plot square."""
        (x0, y0), (x1, y1) = self.plot_start, self.plot_end
        return x0 <= x <= x1 and y0 <= y <= y1


# ===========================================================================
# Curves
# ===========================================================================

class LineType(str, Enum):
    BEZIER = "bezier"
    LINEAR = "linear"


_curve_ids = itertools.count(1)


def next_curve_id() -> int:
    return next(_curve_ids)


@dataclass(eq=False, slots=True)
class Curve:
    pts: FloatArray = field(default_factory=empty_points)
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0
    inter_x: FloatArray = field(default_factory=empty_points)
    inter_y: FloatArray = field(default_factory=empty_points)
    maxima: FloatArray = field(default_factory=empty_points)
    minima: FloatArray = field(default_factory=empty_points)
    end_pts: FloatArray = field(default_factory=empty_points)
    is_closed: bool = False
    color_idx: int = 0
    line_type: LineType = LineType.BEZIER
    uid: int = field(default_factory=next_curve_id)

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        return self.min_x, self.max_x, self.min_y, self.max_y

    @property
    def bbox_center(self) -> Point:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0

    def copy(self) -> Curve:
        """Deep copy keeping the same ``uid``."""
        return Curve(
            pts=self.pts.copy(),
            min_x=self.min_x,
            max_x=self.max_x,
            min_y=self.min_y,
            max_y=self.max_y,
            inter_x=self.inter_x.copy(),
            inter_y=self.inter_y.copy(),
            maxima=self.maxima.copy(),
            minima=self.minima.copy(),
            end_pts=self.end_pts.copy(),
            is_closed=self.is_closed,
            color_idx=self.color_idx,
            line_type=self.line_type,
            uid=self.uid,
        )

    def same_shape(self, other: Curve) -> bool:
        """Structural equality of samples and derived features (ignores ``uid``)."""
        arrays = ("pts", "inter_x", "inter_y", "maxima", "minima", "end_pts")
        return (
            self.bbox == other.bbox
            and self.is_closed == other.is_closed
            and self.color_idx == other.color_idx
            and self.line_type == other.line_type
            and all(np.array_equal(getattr(self, a), getattr(other, a)) for a in arrays)
        )


def copy_curves(curves: list[Curve]) -> list[Curve]:
    return [c.copy() for c in curves]


@dataclass(slots=True)
class CurveSetState:
    canvas_width: float
    canvas_height: float
    curves: list[Curve] = field(default_factory=list)

    def copy(self) -> CurveSetState:
        return CurveSetState(self.canvas_width, self.canvas_height, copy_curves(self.curves))


@dataclass(frozen=True, slots=True)
class Checkpoint:
    curves: tuple[Curve, ...]
