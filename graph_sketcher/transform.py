"""Whole-curve transforms: translate, rotate and anchored non-uniform stretch."""

from __future__ import annotations

from enum import Enum

import numpy as np

from .geometry import bounding_box, recalculate, refresh_intercepts
from .models import DEFAULT_CONFIG, CanvasProperties, Curve, FloatArray, Point, SketchConfig


class Handle(str, Enum):
    """Resize hotspots on a curve's bounding box (pixel y grows downwards)."""

    BOTTOM_LEFT = "bottom_left"      # (min_x, min_y)
    BOTTOM_RIGHT = "bottom_right"    # (max_x, min_y)
    TOP_RIGHT = "top_right"          # (max_x, max_y)
    TOP_LEFT = "top_left"            # (min_x, max_y)
    BOTTOM_MIDDLE = "bottom_middle"
    TOP_MIDDLE = "top_middle"
    LEFT_MIDDLE = "left_middle"
    RIGHT_MIDDLE = "right_middle"


def handle_positions(curve: Curve, edge_offset: float = DEFAULT_CONFIG.edge_handle_offset
                     ) -> dict[Handle, Point]:
    """Stretch handle positions; edge handles sit slightly outside the box."""
    x0, x1, y0, y1 = curve.bbox
    mx, my = curve.bbox_center
    return {
        Handle.BOTTOM_LEFT: (x0, y0),
        Handle.BOTTOM_RIGHT: (x1, y0),
        Handle.TOP_RIGHT: (x1, y1),
        Handle.TOP_LEFT: (x0, y1),
        Handle.BOTTOM_MIDDLE: (mx, y0 - edge_offset),
        Handle.TOP_MIDDLE: (mx, y1 + edge_offset),
        Handle.LEFT_MIDDLE: (x0 - edge_offset, my),
        Handle.RIGHT_MIDDLE: (x1 + edge_offset, my),
    }


def rotate_handle_positions(curve: Curve, offset: float = DEFAULT_CONFIG.rotate_handle_offset
                            ) -> list[Point]:
    x0, x1, y0, y1 = curve.bbox
    return [
        (x0 - offset, y0 - offset),
        (x1 + offset, y0 - offset),
        (x1 + offset, y1 + offset),
        (x0 - offset, y1 + offset),
    ]


# ===========================================================================
# Transforms
# ===========================================================================

def translate(curve: Curve, dx: float, dy: float, canvas: CanvasProperties,
              config: SketchConfig = DEFAULT_CONFIG) -> Curve:
    offset = np.array([dx, dy], dtype=np.float64)
    curve.pts = curve.pts + offset
    curve.maxima = curve.maxima + offset
    curve.minima = curve.minima + offset
    curve.min_x, curve.max_x, curve.min_y, curve.max_y = bounding_box(curve.pts)
    # crossings depend on absolute position, so they are found again
    return refresh_intercepts(curve, canvas, config)


def rotate(curve: Curve, dtheta: float, center: Point, canvas: CanvasProperties,
           config: SketchConfig = DEFAULT_CONFIG) -> Curve:
    c, s = np.cos(dtheta), np.sin(dtheta)
    rot = np.array([[c, -s], [s, c]], dtype=np.float64)
    origin = np.asarray(center, dtype=np.float64)
    curve.pts = (curve.pts - origin) @ rot.T + origin
    return recalculate(curve, canvas, config)


def stretch_points(pts: FloatArray, old_rx: float, old_ry: float, new_rx: float, new_ry: float,
                   base_x: float, base_y: float) -> FloatArray:
    """Scale each sample's offset from ``base`` by new/old range, per axis.

    A zero old range leaves that axis untouched.
    """
    out = np.array(pts, dtype=np.float64, copy=True)
    if len(out) == 0:
        return out
    if old_rx != 0:
        out[:, 0] = (out[:, 0] - base_x) / old_rx * new_rx + base_x
    if old_ry != 0:
        out[:, 1] = (out[:, 1] - base_y) / old_ry * new_ry + base_y
    return out


def stretch(curve: Curve, old_rx: float, old_ry: float, new_rx: float, new_ry: float,
            base_x: float, base_y: float, canvas: CanvasProperties,
            config: SketchConfig = DEFAULT_CONFIG) -> Curve:
    curve.pts = stretch_points(curve.pts, old_rx, old_ry, new_rx, new_ry, base_x, base_y)
    return recalculate(curve, canvas, config)


def stretch_from_handle(curve: Curve, handle: Handle, dx: float, dy: float,
                        canvas: CanvasProperties,
                        config: SketchConfig = DEFAULT_CONFIG) -> bool:
    """Drag one bounding-box handle by (dx, dy), stretching about the opposite side.

    Returns False, leaving the curve untouched, when the drag would shrink a
    range below ``config.min_stretch_range``; this keeps the dragged edge from
    crossing the opposite one.
    """
    x0, x1, y0, y1 = curve.bbox
    orx, ory = x1 - x0, y1 - y0

    moves_min_x = handle in (Handle.BOTTOM_LEFT, Handle.TOP_LEFT, Handle.LEFT_MIDDLE)
    moves_max_x = handle in (Handle.BOTTOM_RIGHT, Handle.TOP_RIGHT, Handle.RIGHT_MIDDLE)
    moves_min_y = handle in (Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT, Handle.BOTTOM_MIDDLE)
    moves_max_y = handle in (Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.TOP_MIDDLE)

    shrink_x = (moves_min_x and dx > 0) or (moves_max_x and dx < 0)
    shrink_y = (moves_min_y and dy > 0) or (moves_max_y and dy < 0)
    limit = config.min_stretch_range
    if (shrink_x and orx - abs(dx) < limit) or (shrink_y and ory - abs(dy) < limit):
        return False

    if moves_min_x:
        x0 += dx
    if moves_max_x:
        x1 += dx
    if moves_min_y:
        y0 += dy
    if moves_max_y:
        y1 += dy
    nrx, nry = x1 - x0, y1 - y0

    if moves_min_x:
        base_x = x1
    elif moves_max_x:
        base_x = x0
    else:
        base_x = (x0 + x1) / 2.0
    if moves_min_y:
        base_y = y1
    elif moves_max_y:
        base_y = y0
    else:
        base_y = (y0 + y1) / 2.0

    if not (moves_min_x or moves_max_x):
        nrx = orx
    if not (moves_min_y or moves_max_y):
        nry = ory
    stretch(curve, orx, ory, nrx, nry, base_x, base_y, canvas, config)
    return True
