"""
Graph Sketcher: desktop host for the curve engine.

Left button     draw a curve / move, stretch, rotate or reshape an existing one
Delete key      delete the selected curve (or drop a dragged curve on "Delete")
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QCursor, QKeyEvent, QMouseEvent
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .engine import GraphSketcher
from .geometry import movable_points
from .models import COLOR_NAMES, Curve, LineType
from .transform import handle_positions, rotate_handle_positions

_logger = logging.getLogger(__name__)


class SketchWindow(QMainWindow):

    # Palette slot per colour name, same order as COLOR_NAMES.
    _CURVE_COLORS: tuple[tuple[int, int, int], ...] = (
        (93, 165, 218),     # Blue
        (250, 164, 58),     # Orange
        (96, 189, 104),     # Green
        (241, 124, 176),    # Pink
        (241, 88, 84),      # Red
        (178, 118, 178),    # Purple
    )
    _KNOT_COLOR = (77, 77, 77)
    _BOX_COLOR = (123, 123, 123)

    def __init__(self, width: int = 600, height: int = 600) -> None:
        super().__init__()
        self.setWindowTitle("Graph Sketcher")
        self.setGeometry(100, 100, width + 40, height + 90)

        self._items: list[Any] = []
        self._engine = GraphSketcher(width, height, draw=self._draw, on_change=self._on_change)

        self._build_ui()
        self._configure_plot()
        self._refresh_buttons()

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root = QVBoxLayout(central)

        self._plot_widget = pg.PlotWidget()
        root.addWidget(self._plot_widget)

        btn_row = QHBoxLayout()
        self._undo_btn = QPushButton("Undo")
        self._redo_btn = QPushButton("Redo")
        self._delete_btn = QPushButton("Delete")
        self._clear_btn = QPushButton("Clear")
        self._line_combo = QComboBox()
        self._line_combo.addItems([lt.value for lt in LineType])
        self._color_combo = QComboBox()
        self._color_combo.addItems(list(COLOR_NAMES))
        self._export_btn = QPushButton("Copy JSON")
        self._status_lbl = QLabel("Ready")
        self._status_lbl.setStyleSheet("color: gray; font-style: italic;")

        self._undo_btn.clicked.connect(self._engine.undo)
        self._redo_btn.clicked.connect(self._engine.redo)
        self._delete_btn.clicked.connect(self._engine.delete_selected)
        self._clear_btn.clicked.connect(self._engine.delete_all)
        self._line_combo.currentTextChanged.connect(self._engine.set_line_type)
        self._color_combo.currentTextChanged.connect(self._engine.set_color)
        self._export_btn.clicked.connect(self.copy_json)

        for widget in (self._undo_btn, self._redo_btn, self._delete_btn, self._clear_btn,
                       self._line_combo, self._color_combo, self._export_btn,
                       self._status_lbl):
            btn_row.addWidget(widget)
        root.addLayout(btn_row)

        vb = self._plot_widget.plotItem.vb
        vb.setMenuEnabled(False)
        vb.setMouseEnabled(x=False, y=False)
        vb.sigResized.connect(self._on_view_resized)
        self._plot_widget.viewport().installEventFilter(self)

    def _configure_plot(self) -> None:
        plot = self._plot_widget.plotItem
        plot.hideAxis("left")
        plot.hideAxis("bottom")
        vb = plot.vb
        vb.disableAutoRange()
        vb.invertY(True)
        self._set_view_range()

    def _set_view_range(self) -> None:
        canvas = self._engine.canvas
        self._plot_widget.setXRange(0, canvas.width, padding=0)
        self._plot_widget.setYRange(0, canvas.height, padding=0)

    def _on_view_resized(self, *_: Any) -> None:
        rect = self._plot_widget.plotItem.vb.boundingRect()
        if rect.width() <= 0 or rect.height() <= 0:
            return
        if self._engine.resize(int(rect.width()), int(rect.height())):
            self._set_view_range()

    # -- events -------------------------------------------------------------

    def eventFilter(self, obj: Any, event: QEvent) -> bool:  # noqa: N802
        if obj is not self._plot_widget.viewport() or not isinstance(event, QMouseEvent):
            return super().eventFilter(obj, event)

        vb = self._plot_widget.plotItem.vb
        et = event.type()
        vp = vb.mapSceneToView(event.position())

        if et == QEvent.Type.MouseButtonPress and event.button() == Qt.MouseButton.LeftButton:
            self._engine.press(float(vp.x()), float(vp.y()))
            return True
        if et == QEvent.Type.MouseMove and event.buttons() & Qt.MouseButton.LeftButton:
            self._engine.drag(float(vp.x()), float(vp.y()))
            return True
        if et == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
            self._engine.release(over_trash=self._over_trash())
            self._refresh_buttons()
            return True
        return super().eventFilter(obj, event)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if event.key() == Qt.Key.Key_Delete:
            self._engine.key_pressed("Delete")
        elif event.key() == Qt.Key.Key_Backspace:
            self._engine.key_pressed("Backspace")
        else:
            super().keyPressEvent(event)
        self._refresh_buttons()

    def _over_trash(self) -> bool:
        local = self._delete_btn.mapFromGlobal(QCursor.pos())
        return self._delete_btn.rect().contains(local)

    # -- engine callbacks ---------------------------------------------------

    def _on_change(self, snapshot: dict[str, Any]) -> None:
        n = len(snapshot["curves"])
        self._status_lbl.setText(f"{n} curve{'s' if n != 1 else ''}")
        self._refresh_buttons()

    def _refresh_buttons(self) -> None:
        self._undo_btn.setEnabled(self._engine.is_undoable())
        self._redo_btn.setEnabled(self._engine.is_redoable())
        self._delete_btn.setEnabled(self._engine.has_selection())
        self._clear_btn.setEnabled(self._engine.has_curves())

    def _draw(self, curves: list[Curve], selected: Optional[int], hidden: frozenset[int]) -> None:
        for item in self._items:
            self._plot_widget.removeItem(item)
        self._items.clear()

        self._draw_axes()
        for idx, curve in enumerate(curves):
            color = self._CURVE_COLORS[curve.color_idx % len(self._CURVE_COLORS)]
            self._add(pg.PlotDataItem(curve.pts[:, 0], curve.pts[:, 1],
                                      pen=pg.mkPen(color, width=2)))
            knots = [k.point for i, k in enumerate(movable_points(curve))
                     if not (idx == selected and i in hidden)]
            knots.extend(map(tuple, curve.inter_x))
            knots.extend(map(tuple, curve.inter_y))
            if knots:
                arr = np.asarray(knots, dtype=np.float64)
                self._add(pg.ScatterPlotItem(arr[:, 0], arr[:, 1], symbol="x", size=7,
                                             pen=pg.mkPen(self._KNOT_COLOR), brush=None))
        if selected is not None and selected < len(curves):
            self._draw_stretch_box(curves[selected])

    def _draw_axes(self) -> None:
        canvas = self._engine.canvas
        (x0, y0), (x1, y1) = canvas.plot_start, canvas.plot_end
        cx, cy = canvas.center
        pen = pg.mkPen((0, 0, 0), width=1.5)
        self._add(pg.PlotDataItem([x0, x1], [cy, cy], pen=pen))
        self._add(pg.PlotDataItem([cx, cx], [y0, y1], pen=pen))

    def _draw_stretch_box(self, curve: Curve) -> None:
        x0, x1, y0, y1 = curve.bbox
        pen = pg.mkPen(self._BOX_COLOR, width=0.5, style=Qt.PenStyle.DashLine)
        self._add(pg.PlotDataItem([x0, x1, x1, x0, x0], [y0, y0, y1, y1, y0], pen=pen))
        handles = list(handle_positions(curve).values()) + rotate_handle_positions(curve)
        arr = np.asarray(handles, dtype=np.float64)
        self._add(pg.ScatterPlotItem(arr[:, 0], arr[:, 1], symbol="s", size=8,
                                     pen=pg.mkPen(self._BOX_COLOR), brush=pg.mkBrush(255, 255, 255)))

    def _add(self, item: Any) -> None:
        self._plot_widget.addItem(item)
        self._items.append(item)

    # -- commands -----------------------------------------------------------

    def copy_json(self) -> None:
        snapshot = self._engine.export()
        if snapshot is None:
            self._status_lbl.setText("Export failed")
            return
        QApplication.clipboard().setText(json.dumps(snapshot))
        self._status_lbl.setText("Copied to clipboard")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    app = QApplication(sys.argv)
    pg.setConfigOptions(antialias=True, background="w", foreground="k")
    window = SketchWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
