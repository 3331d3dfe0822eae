"""
Local reshape of a curve by dragging one of its movable points (knots).

The samples between the dragged knot and its neighbouring knots are stretched
so that the knot lands on the cursor; samples beyond the neighbours stay put.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .geometry import Knot, movable_points, recalculate
from .models import DEFAULT_CONFIG, CanvasProperties, Curve, FloatArray, Point, SketchConfig
from .transform import stretch_points

_logger = logging.getLogger(__name__)


class TurningPointEditor:

    def __init__(self, canvas: CanvasProperties, config: SketchConfig = DEFAULT_CONFIG) -> None:
        self._canvas = canvas
        self._config = config

    # -- neighbour lookup ---------------------------------------------------

    @staticmethod
    def neighbours(knots: list[Knot], pos: int, closed: bool
                   ) -> tuple[Optional[Knot], Optional[Knot]]:
        if closed:
            if len(knots) < 2:
                return None, None
            return knots[pos - 1], knots[(pos + 1) % len(knots)]
        prev = knots[pos - 1] if pos > 0 else None
        nxt = knots[pos + 1] if pos + 1 < len(knots) else None
        return prev, nxt

    # -- drag freedom -------------------------------------------------------

    @staticmethod
    def _stays_on_side(now: float, new: float, ref: float, buffer: float) -> bool:
        side = np.sign(now - ref)
        return side != 0 and (new - ref) * side > buffer

    def free_axes(self, knot: Knot, target: Point, others: list[Knot]) -> tuple[bool, bool]:
        tx, ty = target
        xb, yb = self._config.x_buffer, self._config.y_buffer
        x_free = all(self._stays_on_side(knot.x, tx, o.x, xb) for o in others)
        if knot.kind == "maxima":
            y_free = all(o.y - ty > yb for o in others)
        elif knot.kind == "minima":
            y_free = all(ty - o.y > yb for o in others)
        else:
            y_free = all(self._stays_on_side(knot.y, ty, o.y, yb) for o in others)
        return x_free, y_free

    # -- reshape ------------------------------------------------------------

    def reshape(self, curve: Curve, knot_pos: int, target: Point) -> bool:
        """Move knot number ``knot_pos`` (in traversal order) towards ``target``.

        Returns False, leaving the curve unchanged, when neither axis is free.
        """
        knots = movable_points(curve)
        if not (0 <= knot_pos < len(knots)):
            return False
        knot = knots[knot_pos]
        prev, nxt = self.neighbours(knots, knot_pos, curve.is_closed)
        others = [k for k in (prev, nxt) if k is not None]
        if not others:
            return False

        x_free, y_free = self.free_axes(knot, target, others)
        if not (x_free or y_free):
            return False
        clamped = (target[0] if x_free else knot.x, target[1] if y_free else knot.y)

        if curve.is_closed:
            curve.pts = self._reshape_closed(curve.pts, prev, knot, nxt, clamped)
        else:
            curve.pts = self._split_and_stretch(
                curve.pts,
                prev.index if prev is not None else None,
                knot.index,
                nxt.index if nxt is not None else None,
                clamped,
            )
        recalculate(curve, self._canvas, self._config)
        _logger.debug("Reshaped curve %d at knot %d to (%.1f, %.1f)",
                      curve.uid, knot_pos, clamped[0], clamped[1])
        return True

    @staticmethod
    def _split_and_stretch(seq: FloatArray, p: Optional[int], k: int, q: Optional[int],
                           target: Point) -> FloatArray:
        start = p if p is not None else k
        end = q if q is not None else k
        left_static = seq[:start]
        left_stretch = seq[start:k]
        right_stretch = seq[k:end + 1]
        right_static = seq[end + 1:]

        kx, ky = seq[k]
        tx, ty = target
        if p is not None:
            px, py = seq[p]
            left_stretch = stretch_points(left_stretch, kx - px, ky - py, tx - px, ty - py, px, py)
        if q is not None and q != k:
            qx, qy = seq[q]
            right_stretch = stretch_points(right_stretch, kx - qx, ky - qy, tx - qx, ty - qy, qx, qy)
        else:
            # knot at an open end: nothing beyond it to anchor on
            right_stretch = right_stretch + np.array([tx - kx, ty - ky])
        return np.concatenate((left_static, left_stretch, right_stretch, right_static))

    def _reshape_closed(self, pts: FloatArray, prev: Knot, knot: Knot, nxt: Knot,
                        target: Point) -> FloatArray:
        duplicated = len(pts) > 1 and np.array_equal(pts[0], pts[-1])
        ring = pts[:-1] if duplicated else pts
        m = len(ring)
        p = prev.index
        seq = np.roll(ring, -p, axis=0)
        ext = np.vstack((seq, seq[:1]))
        k = (knot.index - p) % m
        q = (nxt.index - p) % m or m
        out = self._split_and_stretch(ext, 0, k, q, target)[:m]
        ring = np.roll(out, p, axis=0)
        return np.vstack((ring, ring[:1])) if duplicated else ring
