"""
Exchange format encoder/decoder.

The exchange format is a plain, JSON-ready dict holding the curve set in
normalized Cartesian coordinates::

    {"canvasWidth": w, "canvasHeight": h,
     "curves": [{"pts": [[x, y], ...], "minX": .., "maxX": .., "minY": .., "maxY": ..,
                 "interX": [...], "interY": [...], "maxima": [...], "minima": [...],
                 "colorIdx": 0, "isClosed": False, "lineType": "bezier"}, ...]}

``minY``/``maxY`` are Cartesian, i.e. they come from the pixel ``max_y``/``min_y``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

import numpy as np

from .coords import denormalize, denormalize_points, normalize, normalize_points
from .geometry import find_end_pts
from .models import (
    DEFAULT_CONFIG,
    CanvasProperties,
    Curve,
    CurveSetState,
    FloatArray,
    InvalidCanvasError,
    LineType,
    SketchConfig,
    as_points,
)

_logger = logging.getLogger(__name__)

Number = Union[float, FloatArray]

_FEATURES: tuple[tuple[str, str], ...] = (
    ("inter_x", "interX"),
    ("inter_y", "interY"),
    ("maxima", "maxima"),
    ("minima", "minima"),
)


def truncate(value: Number, decimals: int) -> Number:
    """Truncate toward zero to ``decimals`` places.

    The scaled value is rounded to 6 places first so that a value already
    holding ``decimals`` places (e.g. 0.819 -> 8189.999...) is left alone.
    """
    scale = 10.0 ** decimals
    scaled = np.round(np.asarray(value, dtype=np.float64) * scale, 6)
    out = np.trunc(scaled) / scale
    return float(out) if out.ndim == 0 else out


def _leftmost(curve: Curve) -> float:
    return float(curve.pts[:, 0].min()) if len(curve.pts) else 0.0


class StateCodec:

    def __init__(self, config: SketchConfig = DEFAULT_CONFIG) -> None:
        self._config = config

    def canvas(self, width: float, height: float) -> CanvasProperties:
        return CanvasProperties(width, height, self._config.max_canvas)

    # -- encode -------------------------------------------------------------

    def encode(self, state: CurveSetState, trunc: bool = True) -> Optional[dict[str, Any]]:
        """Pixel-space state -> exchange dict, or None when the canvas is invalid."""
        try:
            canvas = self.canvas(state.canvas_width, state.canvas_height)
        except InvalidCanvasError as exc:
            _logger.error("Cannot export curve set: %s", exc)
            return None

        decimals = self._config.export_decimals

        def fix(value: Number) -> Number:
            return truncate(value, decimals) if trunc else value

        curves = sorted(state.curves, key=_leftmost)
        return {
            "canvasWidth": canvas.width,
            "canvasHeight": canvas.height,
            "curves": [self._encode_curve(c, canvas, fix) for c in curves],
        }

    @staticmethod
    def _encode_curve(curve: Curve, canvas: CanvasProperties,
                      fix: Callable[[Number], Number]) -> dict[str, Any]:
        def pts(arr: FloatArray) -> list[list[float]]:
            return np.asarray(fix(normalize_points(arr, canvas))).reshape(-1, 2).tolist()

        out: dict[str, Any] = {
            "pts": pts(curve.pts),
            "minX": fix(normalize(curve.min_x, "x", canvas)),
            "maxX": fix(normalize(curve.max_x, "x", canvas)),
            "minY": fix(normalize(curve.max_y, "y", canvas)),
            "maxY": fix(normalize(curve.min_y, "y", canvas)),
        }
        for attr, key in _FEATURES:
            out[key] = pts(getattr(curve, attr))
        out["colorIdx"] = int(curve.color_idx)
        out["isClosed"] = bool(curve.is_closed)
        out["lineType"] = curve.line_type.value
        return out

    # -- decode -------------------------------------------------------------

    def decode(self, data: dict[str, Any], canvas: Optional[CanvasProperties] = None
               ) -> CurveSetState:
        """Exchange dict -> pixel-space state on ``canvas`` (default: the data's own canvas)."""
        if canvas is None:
            canvas = self.canvas(data["canvasWidth"], data["canvasHeight"])
        curves = [self._decode_curve(c, canvas) for c in data.get("curves", [])]
        return CurveSetState(canvas.width, canvas.height, curves)

    def _decode_curve(self, raw: dict[str, Any], canvas: CanvasProperties) -> Curve:
        pts = denormalize_points(as_points(raw.get("pts", [])), canvas)
        curve = Curve(
            pts=pts,
            min_x=denormalize(float(raw.get("minX", 0.0)), "x", canvas),
            max_x=denormalize(float(raw.get("maxX", 0.0)), "x", canvas),
            min_y=denormalize(float(raw.get("maxY", 0.0)), "y", canvas),
            max_y=denormalize(float(raw.get("minY", 0.0)), "y", canvas),
            is_closed=bool(raw.get("isClosed", False)),
            color_idx=int(raw.get("colorIdx", 0)),
            line_type=LineType(raw.get("lineType", LineType.BEZIER.value)),
        )
        for attr, key in _FEATURES:
            setattr(curve, attr, denormalize_points(as_points(raw.get(key, [])), canvas))
        curve.end_pts = find_end_pts(pts, self._config.branch_gap)
        return curve

    # -- resize -------------------------------------------------------------

    def reproject(self, curves: list[Curve], old: CanvasProperties,
                  new: CanvasProperties) -> list[Curve]:
        """Copies of ``curves`` moved from ``old`` to ``new`` keeping Cartesian positions."""
        def move(arr: FloatArray) -> FloatArray:
            return denormalize_points(normalize_points(arr, old), new)

        out: list[Curve] = []
        for curve in curves:
            c = curve.copy()
            c.pts = move(c.pts)
            for attr, _ in _FEATURES:
                setattr(c, attr, move(getattr(c, attr)))
            c.end_pts = move(c.end_pts)
            c.min_x = denormalize(normalize(curve.min_x, "x", old), "x", new)
            c.max_x = denormalize(normalize(curve.max_x, "x", old), "x", new)
            c.min_y = denormalize(normalize(curve.min_y, "y", old), "y", new)
            c.max_y = denormalize(normalize(curve.max_y, "y", old), "y", new)
            out.append(c)
        return out
