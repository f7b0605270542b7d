# signature/logic/stroke_history.py
"""
Drawing surface state with bounded undo/redo.

The canvas state is the immutable tuple of finished strokes. Every finished
stroke (and every clear) pushes the previous state onto the undo stack and
empties the redo stack. Both stacks are ring buffers: beyond ``limit``
entries the oldest state is evicted.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Tuple

from ..models.capture import DrawnSignature, Point, Stroke

CanvasState = Tuple[Stroke, ...]


class SignaturePad:
    def __init__(self, *, limit: int = 50, size: Optional[Tuple[int, int]] = None) -> None:
        if limit < 1:
            raise ValueError("history limit must be >= 1")
        self.limit = limit
        self.size = size
        self._state: CanvasState = ()
        self._undo: Deque[CanvasState] = deque(maxlen=limit)
        self._redo: Deque[CanvasState] = deque(maxlen=limit)
        self._current: Optional[List[Point]] = None

    # -------- State -----------------------------------------------------------
    @property
    def state(self) -> CanvasState:
        return self._state

    @property
    def is_empty(self) -> bool:
        return not any(self._state)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    # -------- Drawing ---------------------------------------------------------
    def begin_stroke(self, x: float, y: float) -> None:
        self._current = [(float(x), float(y))]

    def add_point(self, x: float, y: float) -> None:
        if self._current is None:
            self.begin_stroke(x, y)
            return
        self._current.append((float(x), float(y)))

    def end_stroke(self) -> None:
        """Commit the stroke in progress."""
        if not self._current:
            self._current = None
            return
        stroke: Stroke = tuple(self._current)
        self._current = None
        self._commit(self._state + (stroke,))

    def add_stroke(self, points) -> None:
        pts = list(points)
        if not pts:
            return
        self.begin_stroke(*pts[0])
        for p in pts[1:]:
            self.add_point(*p)
        self.end_stroke()

    def clear(self) -> None:
        self._current = None
        if self._state:
            self._commit(())

    def _commit(self, new_state: CanvasState) -> None:
        self._undo.append(self._state)
        self._redo.clear()
        self._state = new_state

    # -------- History ---------------------------------------------------------
    def undo(self) -> bool:
        if not self._undo:
            return False
        self._current = None
        self._redo.append(self._state)
        self._state = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._current = None
        self._undo.append(self._state)
        self._state = self._redo.pop()
        return True

    # -------- Export ----------------------------------------------------------
    def capture(self, *, color: Optional[str] = None, width: Optional[int] = None) -> DrawnSignature:
        return DrawnSignature(strokes=self._state, color=color, width=width, size=self.size)
