from __future__ import annotations

from typing import List, Optional
import copy

from .constants import UNDO_LIMIT
from .model import TopologyState


class HistoryManager:
    """Bounded undo/redo over whole-state snapshots.

    Snapshots are deep copies, so editing live state can never reach back into
    an entry. A fresh edit clears the redo stack; there is no branching.
    """

    def __init__(self, capacity: int = UNDO_LIMIT):
        self.capacity = max(1, int(capacity))
        self._undo: List[TopologyState] = []
        self._redo: List[TopologyState] = []

    @staticmethod
    def capture(state: TopologyState) -> TopologyState:
        return copy.deepcopy(state)

    def _push_undo(self, snapshot: TopologyState) -> None:
        self._undo.append(snapshot)
        if len(self._undo) > self.capacity:
            # evict oldest
            del self._undo[0]

    def record(self, snapshot: TopologyState) -> None:
        """Store a snapshot taken before a new edit."""
        self._push_undo(snapshot)
        self._redo.clear()

    def undo(self, current: TopologyState) -> Optional[TopologyState]:
        if not self._undo:
            return None
        previous = self._undo.pop()
        self._redo.append(self.capture(current))
        return previous

    def redo(self, current: TopologyState) -> Optional[TopologyState]:
        if not self._redo:
            return None
        following = self._redo.pop()
        self._push_undo(self.capture(current))
        return following

    def can_undo(self) -> bool:
        return len(self._undo) > 0

    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
