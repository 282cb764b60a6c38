"""
Snapshot undo/redo over (start_point, lines).

The undo stack holds committed states, newest on top; its top is the state the
editor currently shows. Undo moves the top to the redo stack and restores the
entry beneath it.
"""

from __future__ import annotations

import copy
import hashlib
import json
from dataclasses import dataclass
from typing import Callable, List, Optional

from .model import Point, Segment, path_to_dict, Path

DEFAULT_CAPACITY = 200


@dataclass
class HistoryEntry:
    start_point: Point
    lines: List[Segment]


def state_hash(entry: HistoryEntry) -> str:
    """Content hash of a snapshot."""
    payload = path_to_dict(Path(entry.start_point, entry.lines))
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class HistoryManager:
    def __init__(self, capture: Callable[[], HistoryEntry], restore: Callable[[HistoryEntry], None],
                 capacity: int = DEFAULT_CAPACITY):
        self._capture = capture
        self._restore = restore
        self.capacity = max(1, int(capacity))
        self.undo_stack: List[HistoryEntry] = []
        self.redo_stack: List[HistoryEntry] = []
        self.last_saved_hash: Optional[str] = None
        self._applying = False

    def _snapshot(self) -> HistoryEntry:
        return copy.deepcopy(self._capture())

    def save(self) -> bool:
        """Commit the current state. Returns False when nothing was recorded."""
        if self._applying:
            return False
        entry = self._snapshot()
        h = state_hash(entry)
        if h == self.last_saved_hash:
            return False
        self.undo_stack.append(entry)
        if len(self.undo_stack) > self.capacity:
            self.undo_stack.pop(0)
        self.redo_stack.clear()
        self.last_saved_hash = h
        return True

    def _apply(self, entry: HistoryEntry) -> None:
        self._applying = True
        try:
            self._restore(copy.deepcopy(entry))
        finally:
            self._applying = False
        self.last_saved_hash = state_hash(entry)

    def undo(self) -> bool:
        if len(self.undo_stack) < 2:
            return False
        self.redo_stack.append(self._snapshot())
        self.undo_stack.pop()
        self._apply(self.undo_stack[-1])
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False
        entry = self.redo_stack.pop()
        self.undo_stack.append(copy.deepcopy(entry))
        if len(self.undo_stack) > self.capacity:
            self.undo_stack.pop(0)
        self._apply(entry)
        return True

    def can_undo(self) -> bool:
        return len(self.undo_stack) >= 2

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def reset(self) -> None:
        """Drop all history; the next save() becomes the new baseline."""
        self.undo_stack.clear()
        self.redo_stack.clear()
        self.last_saved_hash = None
