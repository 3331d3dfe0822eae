from __future__ import annotations

from typing import Optional

import numpy as np

from .models import DEFAULT_CONFIG, CanvasProperties, FloatArray, SketchConfig, as_points


class StrokePreprocessor:
    """Cleans a raw pointer stroke before it is fitted into a curve."""

    def __init__(self, canvas: CanvasProperties, config: SketchConfig = DEFAULT_CONFIG) -> None:
        self._canvas = canvas
        self._config = config

    def preprocess(self, raw: FloatArray) -> tuple[FloatArray, bool]:
        """Return the (possibly closed or axis-snapped) stroke and its closed flag."""
        pts = as_points(raw)
        if len(pts) == 0:
            return pts, False
        pts, closed = self.close_loop(pts)
        if not closed:
            pts = self.snap_to_axes(pts)
        return pts, closed

    def close_loop(self, pts: FloatArray) -> tuple[FloatArray, bool]:
        if len(pts) < 3:
            return pts, False
        gap = float(np.hypot(*(pts[-1] - pts[0])))
        if gap < self._config.close_threshold:
            return np.vstack((pts, pts[:1])), True
        return pts, False

    def snap_to_axes(self, pts: FloatArray) -> FloatArray:
        """Attach endpoints lying close to the origin row/column onto the axis."""
        pts = pts.copy()
        cx, cy = self._canvas.center
        tol = self._config.axis_snap
        for i in {0, len(pts) - 1}:
            if abs(pts[i, 1] - cy) < tol:
                pts[i, 1] = cy
            if abs(pts[i, 0] - cx) < tol:
                pts[i, 0] = cx
        return pts

    def accepts(self, buffer: list[tuple[float, float]], x: float, y: float) -> bool:
        """Whether a new pointer sample may extend the stroke buffer.

        Strokes are kept monotonic in x unless multi-valued curves are allowed;
        the direction is fixed by the first sample that moves horizontally.
        """
        if self._config.allow_multi_valued or not buffer:
            return True
        direction = self._direction(buffer)
        dx = x - buffer[-1][0]
        if direction is None:
            return True
        return dx * direction > 0

    @staticmethod
    def _direction(buffer: list[tuple[float, float]]) -> Optional[float]:
        x0 = buffer[0][0]
        for x, _ in buffer[1:]:
            if x != x0:
                return float(np.sign(x - x0))
        return None

    @staticmethod
    def sample(pts: FloatArray, interval: float = DEFAULT_CONFIG.sample_interval) -> FloatArray:
        """Greedy down-sampling: keep a point once it is ``interval`` away from the last kept one."""
        pts = as_points(pts)
        if len(pts) < 2:
            return pts
        kept = [0]
        for i in range(1, len(pts)):
            if float(np.hypot(*(pts[i] - pts[kept[-1]]))) >= interval:
                kept.append(i)
        if kept[-1] != len(pts) - 1:
            kept.append(len(pts) - 1)
        return pts[kept].copy()
