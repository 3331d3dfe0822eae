"""Pixel <-> normalized Cartesian coordinate conversion."""

from __future__ import annotations

from typing import Literal

import numpy as np

from .models import CanvasProperties, FloatArray, as_points

Axis = Literal["x", "y"]


def normalize(v: float, axis: Axis, canvas: CanvasProperties) -> float:
    cx, cy = canvas.center
    if axis == "x":
        return (v - cx) / canvas.axis_length
    return (cy - v) / canvas.axis_length


def denormalize(v: float, axis: Axis, canvas: CanvasProperties) -> float:
    cx, cy = canvas.center
    if axis == "x":
        return v * canvas.axis_length + cx
    return cy - v * canvas.axis_length


def normalize_points(pts: FloatArray, canvas: CanvasProperties) -> FloatArray:
    pts = as_points(pts)
    cx, cy = canvas.center
    out = np.empty_like(pts)
    out[:, 0] = (pts[:, 0] - cx) / canvas.axis_length
    out[:, 1] = (cy - pts[:, 1]) / canvas.axis_length
    return out


def denormalize_points(pts: FloatArray, canvas: CanvasProperties) -> FloatArray:
    pts = as_points(pts)
    cx, cy = canvas.center
    out = np.empty_like(pts)
    out[:, 0] = pts[:, 0] * canvas.axis_length + cx
    out[:, 1] = cy - pts[:, 1] * canvas.axis_length
    return out
