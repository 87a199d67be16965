"""Linear undo/redo history over editor text."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .document import HistorySnapshot

LOGGER = logging.getLogger(__name__)


class HistoryManager:
    """Undo/redo stack of ``(html, css)`` snapshots with a cursor.

    Pushing after an undo discards every snapshot after the cursor; there
    is no redo branching. ``max_entries`` caps the stack length by dropping
    the oldest snapshots; ``None`` keeps everything.
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._snapshots: List[HistorySnapshot] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> Tuple[HistorySnapshot, ...]:
        return tuple(self._snapshots)

    @property
    def current(self) -> Optional[HistorySnapshot]:
        if self._cursor < 0:
            return None
        return self._snapshots[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._snapshots) - 1

    def push(self, html: str, css: str) -> HistorySnapshot:
        if self._cursor < len(self._snapshots) - 1:
            del self._snapshots[self._cursor + 1 :]
        snapshot = HistorySnapshot(html=html, css=css)
        self._snapshots.append(snapshot)

        if self.max_entries is not None and len(self._snapshots) > self.max_entries:
            dropped = len(self._snapshots) - self.max_entries
            del self._snapshots[:dropped]
            LOGGER.debug("History cap reached; dropped %d oldest snapshot(s)", dropped)

        self._cursor = len(self._snapshots) - 1
        return snapshot

    def undo(self) -> Optional[HistorySnapshot]:
        """Step back; ``None`` when already at the oldest snapshot."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._snapshots[self._cursor]

    def redo(self) -> Optional[HistorySnapshot]:
        """Step forward; ``None`` when already at the newest snapshot."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._snapshots[self._cursor]

    def reset(self, html: str, css: str) -> HistorySnapshot:
        """Start over with a single snapshot (after a fresh generation)."""
        self._snapshots = []
        self._cursor = -1
        return self.push(html, css)
