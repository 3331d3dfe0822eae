"""
Gesture engine: turns press/drag/release events into curve edits.

A press is classified into exactly one action by :func:`classify_press`
(priority order, first match wins):

1.  Stretch handle of the selected curve        StretchCurve(curve_id, handle)
2.  Rotate handle of the selected curve         RotateCurve(curve_id, center)
3.  Near a movable point of any curve           StretchPoint(curve_id, knot_index)
4.  Near a sample of any curve                  MoveCurve(curve_id)
5.  Inside the plot with room for a new curve   DrawCurve(buffer)
6.  Anything else                               NoAction  (clears the selection)

Drags feed the active action; release commits the pre-edit checkpoint and
notifies the host with an exchange-format snapshot when the curve set changed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, Union

import numpy as np

from .codec import StateCodec
from .fitting import CurveFitter
from .geometry import distance, fraction_inside, movable_points
from .history import HistoryManager
from .models import (
    COLOR_NAMES,
    DEFAULT_CONFIG,
    CanvasProperties,
    Checkpoint,
    Curve,
    CurveSetState,
    EmptyHistoryError,
    InvalidCanvasError,
    LineType,
    MissingSelectionError,
    Point,
    SketchConfig,
    copy_curves,
)
from .reshape import TurningPointEditor
from .transform import (
    Handle,
    handle_positions,
    rotate,
    rotate_handle_positions,
    stretch_from_handle,
    translate,
)

_logger = logging.getLogger(__name__)

DrawCallback = Callable[[list[Curve], Optional[int], frozenset[int]], None]
ChangeCallback = Callable[[dict[str, Any]], None]

DELETE_KEYS = frozenset({"Delete", "Backspace"})


# ===========================================================================
# Actions
# ===========================================================================

@dataclass(frozen=True, slots=True)
class NoAction:
    pass


@dataclass(frozen=True, slots=True)
class StretchCurve:
    curve_id: int
    handle: Handle


@dataclass(frozen=True, slots=True)
class StretchPoint:
    curve_id: int
    knot_index: int


@dataclass(frozen=True, slots=True)
class MoveCurve:
    curve_id: int


@dataclass(slots=True)
class DrawCurve:
    buffer: list[Point] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RotateCurve:
    curve_id: int
    center: Point


Action = Union[NoAction, StretchCurve, StretchPoint, MoveCurve, DrawCurve, RotateCurve]
CurveAction = (StretchCurve, StretchPoint, MoveCurve, RotateCurve)


def classify_press(
    curves: list[Curve],
    selected_id: Optional[int],
    pos: Point,
    canvas: CanvasProperties,
    config: SketchConfig = DEFAULT_CONFIG,
) -> Action:
    radius = config.detect_radius
    selected = next((c for c in curves if c.uid == selected_id), None)

    if selected is not None:
        for handle, hp in handle_positions(selected, config.edge_handle_offset).items():
            if distance(pos, hp) < radius:
                return StretchCurve(selected.uid, handle)
        for hp in rotate_handle_positions(selected, config.rotate_handle_offset):
            if distance(pos, hp) < radius:
                return RotateCurve(selected.uid, selected.bbox_center)

    for curve in curves:
        for i, knot in enumerate(movable_points(curve)):
            if distance(pos, knot.point) < radius + config.knot_detect_extra:
                return StretchPoint(curve.uid, i)

    for curve in curves:
        if len(curve.pts) == 0:
            continue
        d = np.hypot(curve.pts[:, 0] - pos[0], curve.pts[:, 1] - pos[1])
        if float(d.min()) < 2 * radius:
            return MoveCurve(curve.uid)

    if canvas.contains(*pos) and len(curves) < config.curve_limit:
        return DrawCurve([pos])
    return NoAction()


def _same_curves(a: list[Curve] | tuple[Curve, ...], b: list[Curve] | tuple[Curve, ...]) -> bool:
    return len(a) == len(b) and all(x.same_shape(y) for x, y in zip(a, b))


# ===========================================================================
# Engine
# ===========================================================================

class GraphSketcher:

    def __init__(
        self,
        width: float,
        height: float,
        config: SketchConfig = DEFAULT_CONFIG,
        draw: Optional[DrawCallback] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self._config = config
        self._codec = StateCodec(config)
        self._canvas = self._codec.canvas(width, height)
        self._draw = draw
        self._on_change = on_change

        self._curves: list[Curve] = []
        self._selected_id: Optional[int] = None
        self._history = HistoryManager()
        self._line_type = LineType.BEZIER
        self._color_idx = 0

        self._action: Action = NoAction()
        self._checkpoint: Optional[Checkpoint] = None
        self._prev: Optional[Point] = None
        self._dragged = False
        self._pending_delete = False

        self._build_tools()
        self._last_emitted = self._codec.encode(self._snapshot())

    def _build_tools(self) -> None:
        self._fitter = CurveFitter(self._canvas, self._config)
        self._editor = TurningPointEditor(self._canvas, self._config)

    # -- read-only views ----------------------------------------------------

    @property
    def config(self) -> SketchConfig:
        return self._config

    @property
    def canvas(self) -> CanvasProperties:
        return self._canvas

    @property
    def curves(self) -> tuple[Curve, ...]:
        return tuple(self._curves)

    @property
    def action(self) -> Action:
        return self._action

    @property
    def line_type(self) -> LineType:
        return self._line_type

    @property
    def color_idx(self) -> int:
        return self._color_idx

    @property
    def pending_delete(self) -> bool:
        """True while the active edit would remove its curve on release."""
        return self._pending_delete

    @property
    def selected_index(self) -> Optional[int]:
        for i, curve in enumerate(self._curves):
            if curve.uid == self._selected_id:
                return i
        return None

    @property
    def state(self) -> CurveSetState:
        return self._snapshot()

    @state.setter
    def state(self, data: dict[str, Any]) -> None:
        decoded = self._codec.decode(data, self._canvas)
        self._curves = decoded.curves[: self._config.curve_limit]
        self._selected_id = None
        self._history.clear()
        self._reset_gesture()
        self._last_emitted = self._codec.encode(self._snapshot())
        _logger.info("Loaded %d curve(s)", len(self._curves))
        self._redraw()

    # -- host queries -------------------------------------------------------

    def is_undoable(self) -> bool:
        return self._history.is_undoable()

    def is_redoable(self) -> bool:
        return self._history.is_redoable()

    def has_selection(self) -> bool:
        return self.selected_index is not None

    def has_curves(self) -> bool:
        return bool(self._curves)

    # -- gestures -----------------------------------------------------------

    def press(self, x: float, y: float) -> Action:
        pos = (float(x), float(y))
        self._prev = pos
        self._dragged = False
        self._pending_delete = False

        action = classify_press(self._curves, self._selected_id, pos, self._canvas, self._config)
        if isinstance(action, NoAction):
            self._checkpoint = None
            self._selected_id = None
        else:
            self._checkpoint = self._history.checkpoint(self._curves)
            if isinstance(action, (StretchPoint, MoveCurve)):
                self._selected_id = action.curve_id
            elif isinstance(action, DrawCurve):
                self._selected_id = None
        self._action = action
        _logger.debug("Press at (%.1f, %.1f) -> %s", pos[0], pos[1], type(action).__name__)
        self._redraw()
        return action

    def drag(self, x: float, y: float) -> None:
        if self._prev is None:
            return
        pos = (float(x), float(y))
        px, py = self._prev
        dx, dy = pos[0] - px, pos[1] - py
        self._dragged = True
        action = self._action

        if isinstance(action, DrawCurve):
            w, h = self._canvas.width, self._canvas.height
            inside_canvas = 0 < pos[0] < w and 0 < pos[1] < h
            if inside_canvas and self._fitter.preprocessor.accepts(action.buffer, *pos):
                action.buffer.append(pos)
        elif isinstance(action, CurveAction):
            curve = self._curve_by_id(action.curve_id)
            if curve is None:
                return
            if isinstance(action, MoveCurve):
                translate(curve, dx, dy, self._canvas, self._config)
            elif isinstance(action, StretchCurve):
                if not stretch_from_handle(curve, action.handle, dx, dy, self._canvas, self._config):
                    # refused: keep the anchor so the next drag carries the full delta
                    return
            elif isinstance(action, RotateCurve):
                cx, cy = action.center
                dtheta = math.atan2(pos[1] - cy, pos[0] - cx) - math.atan2(py - cy, px - cx)
                rotate(curve, dtheta, action.center, self._canvas, self._config)
            else:
                self._drag_knot(curve, action, pos)
            self._pending_delete = (
                fraction_inside(curve, self._canvas) < self._config.delete_fraction
            )

        self._prev = pos
        self._redraw()

    def _drag_knot(self, curve: Curve, action: StretchPoint, pos: Point) -> None:
        knots = movable_points(curve)
        if not (0 <= action.knot_index < len(knots)):
            return
        sample_idx = knots[action.knot_index].index
        if not self._editor.reshape(curve, action.knot_index, pos):
            return
        # sample order survives a reshape, so follow the knot by its sample index
        knots = movable_points(curve)
        if knots:
            nearest = min(range(len(knots)), key=lambda i: abs(knots[i].index - sample_idx))
            self._action = replace(action, knot_index=nearest)

    def release(self, over_trash: bool = False) -> None:
        action, checkpoint = self._action, self._checkpoint
        dragged, pending = self._dragged, self._pending_delete
        self._reset_gesture()

        if checkpoint is None or not dragged:
            self._redraw()
            return

        if isinstance(action, DrawCurve):
            self._finish_draw(action, checkpoint)
        elif isinstance(action, CurveAction):
            curve = self._curve_by_id(action.curve_id)
            trashed = over_trash and isinstance(action, MoveCurve)
            if curve is not None and (pending or trashed):
                self._curves.remove(curve)
                if self._selected_id == curve.uid:
                    self._selected_id = None
                _logger.info("Deleted curve %d (%s)", curve.uid,
                             "trash" if trashed else "outside plot")
            if not _same_curves(self._curves, checkpoint.curves):
                self._history.commit(checkpoint)

        self._notify()
        self._redraw()

    def _finish_draw(self, action: DrawCurve, checkpoint: Checkpoint) -> None:
        if len(self._curves) >= self._config.curve_limit:
            return
        curve = self._fitter.fit(np.asarray(action.buffer), self._line_type, self._color_idx)
        if curve is None:
            return
        if fraction_inside(curve, self._canvas) < self._config.delete_fraction:
            _logger.info("Discarded stroke drawn mostly outside the plot")
            return
        self._history.commit(checkpoint)
        self._curves.append(curve)
        _logger.info("Created %s curve %d with %d samples",
                     curve.line_type.value, curve.uid, len(curve.pts))

    def key_pressed(self, key: str) -> None:
        if key in DELETE_KEYS:
            self.delete_selected()

    def _reset_gesture(self) -> None:
        self._action = NoAction()
        self._checkpoint = None
        self._prev = None
        self._dragged = False
        self._pending_delete = False

    # -- commands -----------------------------------------------------------

    def undo(self) -> None:
        self._step_history(self._history.undo, "undo")

    def redo(self) -> None:
        self._step_history(self._history.redo, "redo")

    def _step_history(self, step: Callable[[Checkpoint], list[Curve]], name: str) -> None:
        current = self._history.checkpoint(self._curves)
        try:
            restored = step(current)
        except EmptyHistoryError:
            _logger.debug("Nothing to %s", name)
            return
        self._reset_gesture()
        self._curves = restored
        self._selected_id = None
        self._notify()
        self._redraw()

    def delete_selected(self) -> None:
        try:
            idx = self._require_selection()
        except MissingSelectionError:
            _logger.debug("Delete ignored: no curve selected")
            return
        checkpoint = self._history.checkpoint(self._curves)
        removed = self._curves.pop(idx)
        self._selected_id = None
        self._history.commit(checkpoint)
        _logger.info("Deleted curve %d", removed.uid)
        self._notify()
        self._redraw()

    def delete_all(self) -> None:
        if not self._curves:
            return
        checkpoint = self._history.checkpoint(self._curves)
        self._curves = []
        self._selected_id = None
        self._history.commit(checkpoint)
        _logger.info("Deleted all curves")
        self._notify()
        self._redraw()

    def set_line_type(self, line_type: LineType | str) -> None:
        self._line_type = LineType(line_type)

    def set_color(self, name: str) -> None:
        lookup = {n.lower(): i for i, n in enumerate(COLOR_NAMES)}
        self._color_idx = lookup.get(str(name).lower(), 0)

    def resize(self, width: float, height: float) -> bool:
        try:
            new = self._codec.canvas(width, height)
        except InvalidCanvasError as exc:
            _logger.warning("Ignoring resize to %sx%s: %s", width, height, exc)
            return False
        old = self._canvas
        self._curves = self._codec.reproject(self._curves, old, new)
        self._history.reproject(lambda curves: self._codec.reproject(curves, old, new))
        self._canvas = new
        self._build_tools()
        self._redraw()
        return True

    def export(self, trunc: bool = True) -> Optional[dict[str, Any]]:
        return self._codec.encode(self._snapshot(), trunc)

    # -- helpers ------------------------------------------------------------

    def _snapshot(self) -> CurveSetState:
        return CurveSetState(self._canvas.width, self._canvas.height, copy_curves(self._curves))

    def _curve_by_id(self, uid: int) -> Optional[Curve]:
        return next((c for c in self._curves if c.uid == uid), None)

    def _require_selection(self) -> int:
        idx = self.selected_index
        if idx is None:
            raise MissingSelectionError("no curve selected")
        return idx

    def _notify(self) -> None:
        snapshot = self._codec.encode(self._snapshot())
        if snapshot is None or snapshot == self._last_emitted:
            return
        self._last_emitted = snapshot
        if self._on_change is not None:
            self._on_change(snapshot)

    def _redraw(self) -> None:
        if self._draw is None:
            return
        hidden: frozenset[int] = frozenset()
        if isinstance(self._action, StretchPoint):
            hidden = frozenset({self._action.knot_index})
        self._draw(list(self._curves), self.selected_index, hidden)
