"""Shared pytest fixtures for the graph_sketcher test suite.

Fixtures:
    canvas: 600x600 canvas, origin at (300, 300), plot square covering it
    make_curve: factory building a fully recalculated Curve from raw samples
    parabola: open 101-sample hump with one maximum at (300, 200)
    circle: closed 100-sample circle of radius 100 around the origin
    recorder: collects draw/change callbacks emitted by an engine
    engine: GraphSketcher on the 600x600 canvas wired to ``recorder``
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from graph_sketcher.engine import GraphSketcher
from graph_sketcher.geometry import recalculate
from graph_sketcher.models import CanvasProperties, Curve, as_points


class Recorder:
    def __init__(self):
        self.draws = []
        self.changes = []

    def draw(self, curves, selected, hidden):
        self.draws.append((len(curves), selected, hidden))

    def on_change(self, snapshot):
        self.changes.append(snapshot)


@pytest.fixture
def canvas():
    """Square 600x600 canvas."""
    return CanvasProperties(600, 600)


@pytest.fixture
def make_curve(canvas):
    def _make(pts, closed=False, **kwargs):
        curve = Curve(pts=as_points(pts), is_closed=closed, **kwargs)
        return recalculate(curve, canvas)
    return _make


@pytest.fixture
def parabola(make_curve):
    """y = 200 + 200 * ((x - 300) / 200)^2 for x in [100, 500]; maximum at (300, 200)."""
    xs = np.linspace(100.0, 500.0, 101)
    ys = 200.0 + 200.0 * ((xs - 300.0) / 200.0) ** 2
    return make_curve(np.column_stack((xs, ys)))


@pytest.fixture
def circle(make_curve):
    theta = np.linspace(0.0, 2.0 * np.pi, 100, endpoint=False)
    ring = np.column_stack((300.0 + 100.0 * np.cos(theta), 300.0 + 100.0 * np.sin(theta)))
    return make_curve(np.vstack((ring, ring[:1])), closed=True)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def engine(recorder):
    return GraphSketcher(600, 600, draw=recorder.draw, on_change=recorder.on_change)


def draw_stroke(engine, points):
    """Press on the first point, drag through the rest, release."""
    engine.press(*points[0])
    for p in points[1:]:
        engine.drag(*p)
    engine.release()


@pytest.fixture
def stroke():
    return draw_stroke
