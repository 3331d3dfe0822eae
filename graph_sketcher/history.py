from __future__ import annotations

import logging
from typing import Callable

from .models import Checkpoint, Curve, EmptyHistoryError, copy_curves

_logger = logging.getLogger(__name__)


class HistoryManager:
    """Undo/redo over full deep copies of the curve set."""

    def __init__(self) -> None:
        self._undo: list[Checkpoint] = []
        self._redo: list[Checkpoint] = []

    @staticmethod
    def checkpoint(curves: list[Curve]) -> Checkpoint:
        return Checkpoint(tuple(copy_curves(curves)))

    def commit(self, checkpoint: Checkpoint) -> None:
        self._undo.append(checkpoint)
        self._redo.clear()
        _logger.debug("Committed checkpoint (%d undo entries)", len(self._undo))

    def undo(self, current: Checkpoint) -> list[Curve]:
        if not self._undo:
            raise EmptyHistoryError("nothing to undo")
        restored = self._undo.pop()
        self._redo.append(current)
        return copy_curves(list(restored.curves))

    def redo(self, current: Checkpoint) -> list[Curve]:
        if not self._redo:
            raise EmptyHistoryError("nothing to redo")
        restored = self._redo.pop()
        self._undo.append(current)
        return copy_curves(list(restored.curves))

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def reproject(self, convert: Callable[[list[Curve]], list[Curve]]) -> None:
        """Rewrite every stored snapshot, e.g. after the canvas is resized."""
        for stack in (self._undo, self._redo):
            stack[:] = [
                Checkpoint(tuple(convert(list(cp.curves)))) for cp in stack
            ]

    def is_undoable(self) -> bool:
        return bool(self._undo)

    def is_redoable(self) -> bool:
        return bool(self._redo)
