from .codec import StateCodec
from .engine import GraphSketcher, classify_press
from .models import (
    CanvasProperties,
    Curve,
    CurveSetState,
    EmptyHistoryError,
    InvalidCanvasError,
    LineType,
    MissingSelectionError,
    SketchConfig,
    SketchError,
)

__all__ = [
    "CanvasProperties",
    "Curve",
    "CurveSetState",
    "EmptyHistoryError",
    "GraphSketcher",
    "InvalidCanvasError",
    "LineType",
    "MissingSelectionError",
    "SketchConfig",
    "SketchError",
    "StateCodec",
    "classify_press",
]
