"""
Tests for press classification and the GraphSketcher gesture engine.

Covers:
- Press priority (handles > knots > samples > draw > nothing)
- Drawing, selecting, moving, stretching, rotating and reshaping through gestures
- Deletion by dragging off the plot or onto the trash
- Undo/redo, delete commands, resize, state loading and change notifications
"""

import numpy as np
import pytest

from graph_sketcher.engine import (
    DrawCurve,
    GraphSketcher,
    MoveCurve,
    NoAction,
    RotateCurve,
    StretchCurve,
    StretchPoint,
    classify_press,
)
from graph_sketcher.codec import StateCodec
from graph_sketcher.geometry import bounding_box
from graph_sketcher.models import CanvasProperties, CurveSetState, LineType, SketchConfig
from graph_sketcher.transform import Handle

# Quadratic hump; once fitted, sample 25 sits at (125, 92.5) and the maximum at (150, 90).
HUMP = [(100, 100), (150, 80), (200, 100)]
ON_HUMP = (125, 92.5)


class TestClassifyPress:

    def test_empty_plot_starts_drawing(self, canvas):
        action = classify_press([], None, (300.0, 300.0), canvas)
        assert isinstance(action, DrawCurve)
        assert action.buffer == [(300.0, 300.0)]

    def test_outside_plot_does_nothing(self):
        wide = CanvasProperties(800, 600)
        assert isinstance(classify_press([], None, (50.0, 300.0), wide), NoAction)

    def test_curve_limit_blocks_drawing(self, canvas, parabola):
        cfg = SketchConfig(curve_limit=1)
        assert isinstance(classify_press([parabola], None, (300.0, 550.0), canvas, cfg), NoAction)

    def test_knot_before_sample(self, canvas, parabola):
        action = classify_press([parabola], None, (300.0, 205.0), canvas)
        assert action == StretchPoint(parabola.uid, 1)

    def test_sample_moves_curve(self, canvas, parabola):
        action = classify_press([parabola], None, (200.0, 250.0), canvas)
        assert action == MoveCurve(parabola.uid)

    def test_handles_only_for_selected_curve(self, canvas, parabola):
        pos = (100.0, 400.0)
        assert classify_press([parabola], None, pos, canvas) == StretchPoint(parabola.uid, 0)
        assert classify_press([parabola], parabola.uid, pos, canvas) == \
            StretchCurve(parabola.uid, Handle.TOP_LEFT)

    def test_rotate_handle(self, canvas, parabola):
        action = classify_press([parabola], parabola.uid, (84.0, 184.0), canvas)
        assert action == RotateCurve(parabola.uid, (300.0, 300.0))


class TestDrawing:

    def test_draw_creates_curve(self, engine, recorder, stroke):
        stroke(engine, HUMP)
        assert len(engine.curves) == 1
        curve = engine.curves[0]
        assert len(curve.pts) == 101
        assert tuple(curve.pts[0]) == pytest.approx((100, 100))
        assert tuple(curve.pts[-1]) == pytest.approx((200, 100))
        assert len(curve.maxima) == 1
        assert curve.maxima[0, 0] == pytest.approx(150, abs=1)
        assert engine.is_undoable()
        assert engine.has_curves()
        assert engine.selected_index is None
        assert len(recorder.changes) == 1
        assert recorder.changes[0]["curves"][0]["colorIdx"] == 0

    def test_press_reports_action(self, engine):
        assert isinstance(engine.press(100, 100), DrawCurve)
        assert isinstance(engine.action, DrawCurve)

    def test_samples_outside_canvas_are_dropped(self, engine, stroke):
        stroke(engine, [(100, 100), (150, 80), (700, 50), (200, 100)])
        assert tuple(engine.curves[0].pts[-1]) == pytest.approx((200, 100))

    def test_backtracking_samples_are_dropped(self, engine, stroke):
        stroke(engine, [(100, 100), (150, 80), (140, 70), (200, 100)])
        curve = engine.curves[0]
        assert curve.min_y == pytest.approx(90)
        assert curve.maxima[0, 0] == pytest.approx(150, abs=1)

    def test_click_without_drag_draws_nothing(self, engine, recorder):
        engine.press(300, 300)
        engine.release()
        assert not engine.curves
        assert not engine.is_undoable()
        assert recorder.changes == []

    def test_too_short_stroke_is_discarded(self, engine, stroke):
        stroke(engine, [(100, 100), (102, 100)])
        assert not engine.curves
        assert not engine.is_undoable()

    def test_stroke_mostly_outside_plot_is_discarded(self, stroke):
        engine = GraphSketcher(800, 600)
        stroke(engine, [(105, 100), (60, 80), (10, 100)])
        assert not engine.curves
        assert not engine.is_undoable()

    def test_linear_line(self, engine, stroke):
        engine.set_line_type("linear")
        stroke(engine, [(100, 100), (150, 150), (250, 200)])
        curve = engine.curves[0]
        assert curve.line_type == LineType.LINEAR
        assert len(curve.pts) == 100
        assert tuple(curve.pts[0]) == pytest.approx((100, 100))
        assert tuple(curve.pts[-1]) == pytest.approx((250, 200))

    def test_curve_limit(self, engine, recorder, stroke):
        stroke(engine, [(100, 100), (300, 80), (500, 100)])
        stroke(engine, [(100, 250), (300, 230), (500, 250)])
        stroke(engine, [(100, 450), (300, 430), (500, 450)])
        assert len(engine.curves) == 3
        assert isinstance(engine.press(300, 550), NoAction)
        engine.drag(400, 550)
        engine.release()
        assert len(engine.curves) == 3
        assert len(recorder.changes) == 3

    def test_color_selection(self, engine, stroke):
        engine.set_color("green")
        assert engine.color_idx == 2
        stroke(engine, HUMP)
        assert engine.curves[0].color_idx == 2
        engine.set_color("teal")
        assert engine.color_idx == 0

    def test_unknown_line_type(self, engine):
        with pytest.raises(ValueError):
            engine.set_line_type("spline")


class TestEditing:

    @pytest.fixture
    def drawn(self, engine, stroke):
        stroke(engine, HUMP)
        return engine

    def test_click_selects_without_commit(self, drawn, recorder):
        assert isinstance(drawn.press(*ON_HUMP), MoveCurve)
        drawn.release()
        assert drawn.selected_index == 0
        assert drawn.has_selection()
        assert len(recorder.changes) == 1

    def test_drag_off_plot_deletes(self, drawn, recorder):
        drawn.press(*ON_HUMP)
        drawn.drag(ON_HUMP[0] + 1000, ON_HUMP[1] + 1000)
        assert drawn.pending_delete
        drawn.release()
        assert drawn.curves == ()
        assert not drawn.has_selection()
        assert recorder.changes[-1]["curves"] == []
        drawn.undo()
        assert len(drawn.curves) == 1

    def test_drop_on_trash_deletes(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.drag(ON_HUMP[0] + 5, ON_HUMP[1])
        drawn.release(over_trash=True)
        assert drawn.curves == ()

    def test_move(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.drag(ON_HUMP[0] + 10, ON_HUMP[1] + 5)
        drawn.release()
        curve = drawn.curves[0]
        assert tuple(curve.pts[0]) == pytest.approx((110, 105))
        assert curve.bbox == bounding_box(curve.pts)

    def test_undo_redo_two_edits(self, drawn):
        original = drawn.curves[0].copy()
        drawn.press(*ON_HUMP)
        drawn.drag(135, 97.5)
        drawn.release()
        after_first = drawn.curves[0].copy()

        assert isinstance(drawn.press(135, 97.5), MoveCurve)
        drawn.drag(135, 127.5)
        drawn.release()

        drawn.undo()
        drawn.undo()
        assert drawn.curves[0].same_shape(original)
        assert drawn.curves[0].uid == original.uid
        drawn.redo()
        assert drawn.curves[0].same_shape(after_first)

    def test_undo_then_redo_is_identity(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.drag(140, 92.5)
        drawn.release()
        current = drawn.curves[0].copy()
        drawn.undo()
        drawn.redo()
        assert drawn.curves[0].same_shape(current)

    def test_new_edit_clears_redo(self, drawn):
        drawn.undo()
        assert drawn.is_redoable()
        drawn.press(300, 300)
        drawn.drag(400, 280)
        drawn.drag(500, 300)
        drawn.release()
        assert not drawn.is_redoable()

    def test_drag_maximum(self, drawn, recorder):
        assert drawn.press(150, 90) == StretchPoint(drawn.curves[0].uid, 1)
        drawn.drag(150, 60)
        drawn.release()
        curve = drawn.curves[0]
        assert np.allclose(curve.maxima, [[150, 60]])
        assert tuple(curve.pts[0]) == pytest.approx((100, 100))
        assert any(hidden == frozenset({1}) for _, _, hidden in recorder.draws)
        assert drawn.is_undoable()

    def test_stretch_handle(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        action = drawn.press(200, 90)
        assert isinstance(action, StretchCurve)
        assert action.handle == Handle.BOTTOM_RIGHT
        drawn.drag(220, 90)
        drawn.release()
        curve = drawn.curves[0]
        assert curve.max_x == pytest.approx(220)
        assert curve.min_x == pytest.approx(100)

    def test_refused_stretch_keeps_drag_anchor(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        assert drawn.press(200, 90).handle == Handle.BOTTOM_RIGHT
        drawn.drag(120, 90)
        assert drawn.curves[0].max_x == pytest.approx(200)
        drawn.drag(130, 90)
        drawn.release()
        curve = drawn.curves[0]
        assert curve.max_x == pytest.approx(130)
        assert curve.min_x == pytest.approx(100)

    def test_rotate_handle(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        before = drawn.curves[0].copy()
        action = drawn.press(84, 74)
        assert isinstance(action, RotateCurve)
        assert action.center == pytest.approx((150, 95))
        drawn.drag(216, 74)
        drawn.release()
        curve = drawn.curves[0]
        assert not curve.same_shape(before)
        assert curve.bbox == bounding_box(curve.pts)
        assert curve.bbox_center == pytest.approx((150, 95), abs=25)


class TestCommands:

    @pytest.fixture
    def drawn(self, engine, stroke):
        stroke(engine, HUMP)
        return engine

    def test_delete_without_selection_is_ignored(self, drawn, recorder):
        drawn.delete_selected()
        assert len(drawn.curves) == 1
        assert len(recorder.changes) == 1

    def test_delete_key(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        drawn.key_pressed("Delete")
        assert drawn.curves == ()
        drawn.undo()
        assert len(drawn.curves) == 1

    def test_other_keys_ignored(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        drawn.key_pressed("a")
        assert len(drawn.curves) == 1

    def test_delete_all(self, drawn, stroke):
        stroke(drawn, [(100, 450), (300, 430), (500, 450)])
        drawn.delete_all()
        assert not drawn.has_curves()
        drawn.undo()
        assert len(drawn.curves) == 2

    def test_undo_on_empty_history(self, engine, recorder):
        engine.undo()
        engine.redo()
        assert engine.curves == ()
        assert recorder.changes == []

    def test_undo_clears_selection(self, drawn):
        drawn.press(*ON_HUMP)
        drawn.release()
        drawn.undo()
        assert not drawn.has_selection()


class TestCanvas:

    def test_resize_keeps_cartesian_positions(self, engine, stroke):
        stroke(engine, HUMP)
        before = engine.export(trunc=False)["curves"][0]["pts"]
        assert engine.resize(800, 600)
        assert engine.canvas.width == 800
        after = engine.export(trunc=False)["curves"][0]["pts"]
        assert np.allclose(before, after)
        assert tuple(engine.curves[0].pts[0]) == pytest.approx((200, 100))

    def test_resize_reprojects_history(self, engine, stroke):
        stroke(engine, HUMP)
        engine.press(*ON_HUMP)
        engine.drag(ON_HUMP[0] + 10, ON_HUMP[1])
        engine.release()
        engine.resize(800, 600)
        engine.undo()
        assert tuple(engine.curves[0].pts[0]) == pytest.approx((200, 100))

    @pytest.mark.parametrize("size", [(0, 600), (6000, 600)])
    def test_invalid_resize_is_ignored(self, engine, size):
        assert not engine.resize(*size)
        assert engine.canvas.width == 600

    def test_load_state(self, engine, stroke):
        stroke(engine, HUMP)
        other = GraphSketcher(600, 600)
        other.state = engine.export(trunc=False)
        assert len(other.curves) == 1
        assert np.allclose(other.curves[0].pts, engine.curves[0].pts)
        assert not other.is_undoable()
        assert not other.has_selection()
        assert len(other.state.curves) == 1

    def test_reloaded_export_is_stable(self, engine, stroke):
        stroke(engine, HUMP)
        data = engine.export()
        other = GraphSketcher(600, 600)
        other.state = data
        assert other.export() == data

    def test_load_state_respects_curve_limit(self, engine, make_curve):
        curves = [make_curve([(100, y), (300, y + 10), (500, y)]) for y in (50, 200, 350, 500)]
        engine.state = StateCodec().encode(CurveSetState(600, 600, curves))
        assert len(engine.curves) == 3

    def test_export(self, engine, stroke):
        stroke(engine, HUMP)
        data = engine.export()
        assert data["canvasWidth"] == 600
        assert data["curves"][0]["pts"][0] == [-0.3333, 0.3333]
