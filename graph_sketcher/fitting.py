"""
Stroke fitting: turns a raw pointer stroke into a fixed-length sampled curve.

Line styles
-----------
LINEAR   straight segment between the stroke's endpoints, sorted by x
BEZIER   single Bezier of degree n = (#control points - 1), Bernstein form
         B(t) = sum_k C(n, k) t^k (1 - t)^(n - k) P_k
         The basis is the binomial pmf (scipy.stats.binom), which stays finite
         for high degrees where C(n, k) alone overflows.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.stats import binom

from .geometry import recalculate
from .models import (
    DEFAULT_CONFIG,
    CanvasProperties,
    Curve,
    FloatArray,
    LineType,
    SketchConfig,
    as_points,
)
from .preprocessing import StrokePreprocessor

_logger = logging.getLogger(__name__)


def linear_line_style(start: tuple[float, float], end: tuple[float, float],
                      num_samples: int = DEFAULT_CONFIG.num_samples) -> FloatArray:
    a, b = sorted((tuple(map(float, start)), tuple(map(float, end))), key=lambda p: p[0])
    t = np.linspace(0.0, 1.0, num_samples)[:, None]
    return (1.0 - t) * np.asarray(a) + t * np.asarray(b)


def bezier_line_style(ctrl: FloatArray, num_samples: int = DEFAULT_CONFIG.num_samples) -> FloatArray:
    ctrl = as_points(ctrl)
    n = len(ctrl) - 1
    t = (np.arange(num_samples, dtype=np.float64) / num_samples)[:, None]
    k = np.arange(n + 1)[None, :]
    basis = binom.pmf(k, n, t)
    curve = basis @ ctrl
    curve[0] = ctrl[0]
    # t = 1 is not in the grid above; close the range on the exact last control point
    return np.vstack((curve, ctrl[-1:]))


# ===========================================================================
# Line fitters
# ===========================================================================

class LineFitter(ABC):

    min_points: int = 1

    @abstractmethod
    def fit(self, pts: FloatArray) -> Optional[FloatArray]:
        raise NotImplementedError


class LinearFitter(LineFitter):

    def __init__(self, num_samples: int = DEFAULT_CONFIG.num_samples) -> None:
        self._num_samples = num_samples

    def fit(self, pts: FloatArray) -> Optional[FloatArray]:
        if len(pts) < self.min_points:
            return None
        return linear_line_style(pts[0], pts[-1], self._num_samples)


class BezierFitter(LineFitter):

    min_points = 3

    def __init__(self, num_samples: int = DEFAULT_CONFIG.num_samples,
                 interval: float = DEFAULT_CONFIG.sample_interval) -> None:
        self._num_samples = num_samples
        self._interval = interval

    def fit(self, pts: FloatArray) -> Optional[FloatArray]:
        ctrl = StrokePreprocessor.sample(pts, self._interval)
        if len(ctrl) < self.min_points:
            return None
        return bezier_line_style(ctrl, self._num_samples)


# ===========================================================================
# Curve fitter
# ===========================================================================

class CurveFitter:

    def __init__(self, canvas: CanvasProperties, config: SketchConfig = DEFAULT_CONFIG) -> None:
        self._canvas = canvas
        self._config = config
        self._preprocessor = StrokePreprocessor(canvas, config)
        self._fitters: dict[LineType, LineFitter] = {
            LineType.LINEAR: LinearFitter(config.num_samples),
            LineType.BEZIER: BezierFitter(config.num_samples, config.sample_interval),
        }

    @property
    def preprocessor(self) -> StrokePreprocessor:
        return self._preprocessor

    def fit(self, raw: FloatArray, line_type: LineType = LineType.BEZIER,
            color_idx: int = 0) -> Optional[Curve]:
        raw = as_points(raw)
        if len(raw) == 0:
            return None
        if line_type == LineType.LINEAR:
            # a straight line cannot close on itself
            pts, closed = self._preprocessor.snap_to_axes(raw), False
        else:
            pts, closed = self._preprocessor.preprocess(raw)
        sampled = self._fitters[line_type].fit(pts)
        if sampled is None:
            _logger.debug("Rejected %s stroke with %d raw points", line_type.value, len(raw))
            return None
        curve = Curve(pts=sampled, is_closed=closed, color_idx=color_idx, line_type=line_type)
        return recalculate(curve, self._canvas, self._config)
