"""
Derived curve features: bounding box, axis intercepts, turning points, endpoints.

All features are recomputed together by :func:`recalculate`; every code path
that changes ``Curve.pts`` must call it (or an equivalent) before returning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np

from .models import (
    DEFAULT_CONFIG,
    CanvasProperties,
    Curve,
    FloatArray,
    Point,
    SketchConfig,
    as_points,
    empty_points,
)

TurnMode = Literal["maxima", "minima"]
KnotKind = Literal["maxima", "minima", "end"]


@dataclass(frozen=True, slots=True)
class Knot:
    """A movable point of a curve, located by its sample index."""

    index: int
    kind: KnotKind
    x: float
    y: float

    @property
    def point(self) -> Point:
        return self.x, self.y


# ===========================================================================
# Bounding box
# ===========================================================================

def bounding_box(pts: FloatArray) -> tuple[float, float, float, float]:
    if len(pts) == 0:
        return 0.0, 0.0, 0.0, 0.0
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return float(lo[0]), float(hi[0]), float(lo[1]), float(hi[1])


# ===========================================================================
# Axis intercepts
# ===========================================================================

def _axis_crossings(pts: FloatArray, axis_value: float, coord: int, max_gap: float) -> FloatArray:
    """Crossings of the line ``pts[:, coord] == axis_value``.

    Exact hits are taken as-is; straddling pairs are linearly interpolated
    unless their separation in ``coord`` exceeds ``max_gap`` (a jump between
    disconnected branches rather than a real crossing).
    """
    if len(pts) == 0:
        return empty_points()
    other = 1 - coord
    hits: list[list[float]] = []
    if pts[0, coord] == axis_value:
        hits.append([float(pts[0, 0]), float(pts[0, 1])])
    for i in range(1, len(pts)):
        a, b = pts[i - 1], pts[i]
        if b[coord] == axis_value:
            hits.append([float(b[0]), float(b[1])])
            continue
        da = a[coord] - axis_value
        db = b[coord] - axis_value
        if da * db < 0 and abs(b[coord] - a[coord]) <= max_gap:
            frac = (axis_value - a[coord]) / (b[coord] - a[coord])
            hit = [0.0, 0.0]
            hit[coord] = axis_value
            hit[other] = float(a[other] + frac * (b[other] - a[other]))
            hits.append(hit)
    return as_points(hits)


def find_intercept_x(pts: FloatArray, axis_y: float,
                     max_gap: float = DEFAULT_CONFIG.branch_gap) -> FloatArray:
    """Crossings of the horizontal axis (pixel row ``axis_y``)."""
    return _axis_crossings(pts, axis_y, 1, max_gap)


def find_intercept_y(pts: FloatArray, axis_x: float,
                     max_gap: float = DEFAULT_CONFIG.branch_gap) -> FloatArray:
    """Crossings of the vertical axis (pixel column ``axis_x``)."""
    return _axis_crossings(pts, axis_x, 0, max_gap)


# ===========================================================================
# Endpoints
# ===========================================================================

def find_end_pts(pts: FloatArray, max_gap: float = DEFAULT_CONFIG.branch_gap) -> FloatArray:
    if len(pts) == 0:
        return empty_points()
    ends = [pts[0], pts[-1]]
    # an x jump this large means the samples belong to separate branches
    for i in np.nonzero(np.abs(np.diff(pts[:, 0])) > max_gap)[0]:
        ends.append(pts[i])
        ends.append(pts[i + 1])
    return as_points(ends)


# ===========================================================================
# Turning points
# ===========================================================================

def _ring(pts: FloatArray, closed: bool) -> FloatArray:
    if closed and len(pts) > 1 and np.array_equal(pts[0], pts[-1]):
        return pts[:-1]
    return pts


def _merge_close(indices: list[int], ring: FloatArray, highest: bool, gap: float) -> list[int]:
    """Keep one turning point per cluster lying within ``gap`` px of each other in x.

    Clusters chain along x; the most extreme sample of each survives.
    """
    if len(indices) < 2 or gap <= 0:
        return indices
    order = sorted(indices, key=lambda i: ring[i, 0])
    pick = min if highest else max
    kept: list[int] = []
    cluster = [order[0]]
    for i in order[1:]:
        if ring[i, 0] - ring[cluster[-1], 0] < gap:
            cluster.append(i)
            continue
        kept.append(pick(cluster, key=lambda j: ring[j, 1]))
        cluster = [i]
    kept.append(pick(cluster, key=lambda j: ring[j, 1]))
    return sorted(kept)


def turn_indices(
    pts: FloatArray,
    closed: bool = False,
    cutoff: int = DEFAULT_CONFIG.turn_cutoff,
    window: int = DEFAULT_CONFIG.turn_window,
    merge_gap: float = DEFAULT_CONFIG.turn_merge,
) -> tuple[list[int], list[int]]:
    """Sample indices of maxima and minima, in traversal order.

    Pixel y grows downwards, so a maximum has a *smaller* y than the samples
    ``window`` positions either side of it. Turning points of the same kind
    closer than ``merge_gap`` px in x collapse onto the most extreme one.
    """
    ring = _ring(pts, closed)
    n = len(ring)
    if n < 3:
        return [], []
    y = ring[:, 1]

    if closed:
        scan = range(n)
    else:
        edge = max(cutoff, 1)
        scan = range(edge, n - edge)

    candidates: list[int] = []
    for i in scan:
        prev, nxt = y[i - 1], y[(i + 1) % n]
        if (y[i] < prev and y[i] < nxt) or (y[i] > prev and y[i] > nxt) or y[i] == prev:
            candidates.append(i)

    # collapse each plateau of equal-height samples onto its middle
    reps: list[int] = []
    for i in candidates:
        lo = hi = i
        while lo > 0 and y[lo - 1] == y[i]:
            lo -= 1
        while hi + 1 < n and y[hi + 1] == y[i]:
            hi += 1
        mid = (lo + hi) // 2
        if not reps or reps[-1] != mid:
            reps.append(mid)

    maxima: list[int] = []
    minima: list[int] = []
    for i in reps:
        lo, hi = i - window, i + window
        if closed:
            y_lo, y_hi = y[lo % n], y[hi % n]
        elif lo < 0 or hi >= n:
            continue
        else:
            y_lo, y_hi = y[lo], y[hi]
        if y[i] < y_lo and y[i] < y_hi:
            maxima.append(i)
        elif y[i] > y_lo and y[i] > y_hi:
            minima.append(i)
    return _merge_close(maxima, ring, True, merge_gap), _merge_close(minima, ring, False, merge_gap)


def find_turn_pts(
    pts: FloatArray,
    mode: TurnMode,
    closed: bool = False,
    cutoff: int = DEFAULT_CONFIG.turn_cutoff,
    window: int = DEFAULT_CONFIG.turn_window,
    merge_gap: float = DEFAULT_CONFIG.turn_merge,
) -> FloatArray:
    maxima, minima = turn_indices(pts, closed, cutoff, window, merge_gap)
    chosen = maxima if mode == "maxima" else minima
    if not chosen:
        return empty_points()
    return pts[chosen].copy()


# ===========================================================================
# Whole-curve refresh
# ===========================================================================

def recalculate(curve: Curve, canvas: CanvasProperties,
                config: SketchConfig = DEFAULT_CONFIG) -> Curve:
    """Refresh every derived feature of ``curve`` from its samples, in place."""
    pts = curve.pts
    cx, cy = canvas.center
    curve.min_x, curve.max_x, curve.min_y, curve.max_y = bounding_box(pts)
    curve.inter_x = find_intercept_x(pts, cy, config.branch_gap)
    curve.inter_y = find_intercept_y(pts, cx, config.branch_gap)
    maxima, minima = turn_indices(pts, curve.is_closed, config.turn_cutoff,
                                  config.turn_window, config.turn_merge)
    curve.maxima = pts[maxima].copy() if maxima else empty_points()
    curve.minima = pts[minima].copy() if minima else empty_points()
    curve.end_pts = find_end_pts(pts, config.branch_gap)
    return curve


def refresh_intercepts(curve: Curve, canvas: CanvasProperties,
                       config: SketchConfig = DEFAULT_CONFIG) -> Curve:
    cx, cy = canvas.center
    curve.inter_x = find_intercept_x(curve.pts, cy, config.branch_gap)
    curve.inter_y = find_intercept_y(curve.pts, cx, config.branch_gap)
    curve.end_pts = find_end_pts(curve.pts, config.branch_gap)
    return curve


# ===========================================================================
# Queries used by editing and hit testing
# ===========================================================================

def nearest_index(pts: FloatArray, x: float, y: float) -> Optional[int]:
    if len(pts) == 0:
        return None
    d2 = (pts[:, 0] - x) ** 2 + (pts[:, 1] - y) ** 2
    return int(np.argmin(d2))


def movable_points(curve: Curve) -> list[Knot]:
    """Minima, maxima and (open curves only) endpoints, in traversal order."""
    groups: list[tuple[KnotKind, FloatArray]] = [
        ("maxima", curve.maxima),
        ("minima", curve.minima),
    ]
    if not curve.is_closed:
        groups.append(("end", curve.end_pts))

    seen: set[int] = set()
    knots: list[Knot] = []
    for kind, pts in groups:
        for x, y in pts:
            idx = nearest_index(curve.pts, float(x), float(y))
            if idx is None or idx in seen:
                continue
            seen.add(idx)
            sx, sy = curve.pts[idx]
            knots.append(Knot(idx, kind, float(sx), float(sy)))
    knots.sort(key=lambda k: k.index)
    return knots


def fraction_inside(curve: Curve, canvas: CanvasProperties) -> float:
    if len(curve.pts) == 0:
        return 0.0
    (x0, y0), (x1, y1) = canvas.plot_start, canvas.plot_end
    xs, ys = curve.pts[:, 0], curve.pts[:, 1]
    inside = (xs >= x0) & (xs <= x1) & (ys >= y0) & (ys <= y1)
    return float(np.mean(inside))


def distance(a: Point, b: Point) -> float:
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))
