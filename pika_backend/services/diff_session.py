"""
Diff Session - Accept/reject review state for a single note
"""

from __future__ import annotations

from pika_backend.models.diff import SessionSnapshot, SessionState

from .diff_engine import DiffEngine, split_lines


class DiffSession:
    """Holds the committed text, the candidate text and the lines that differ.

    The session is CLEAN while the candidate matches the committed text and
    REVIEWING while changed lines exist. Every candidate update recomputes
    the changed lines from scratch, so indices always refer to the current
    ``modified_text``. Methods never await, which keeps them atomic on the
    event loop; sharing a session across threads needs an external lock.
    """

    def __init__(self, engine: DiffEngine | None = None, note_id: str | None = None):
        self.engine = engine or DiffEngine()
        self.note_id = note_id
        self.original_text = ""
        self.modified_text = ""
        self._changed_lines: frozenset[int] = frozenset()

    @property
    def changed_lines(self) -> frozenset[int]:
        return self._changed_lines

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._changed_lines)

    @property
    def state(self) -> SessionState:
        return SessionState.REVIEWING if self._changed_lines else SessionState.CLEAN

    def start(self, original: str) -> None:
        """Begin a review round with ``original`` as the baseline"""
        self.original_text = original
        self.modified_text = original
        self._changed_lines = frozenset()

    def set_modified_text(self, text: str) -> frozenset[int]:
        """Replace the candidate text and recompute the changed lines"""
        self.modified_text = text
        self._changed_lines = frozenset(
            self.engine.compute_changed_lines(
                split_lines(self.original_text),
                split_lines(self.modified_text),
            )
        )
        return self._changed_lines

    def accept(self) -> str:
        """Commit the candidate text and return it for persistence"""
        self.original_text = self.modified_text
        self._changed_lines = frozenset()
        return self.original_text

    def reject(self) -> str:
        """Discard the candidate text and return the restored baseline"""
        self.modified_text = self.original_text
        self._changed_lines = frozenset()
        return self.modified_text

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            note_id=self.note_id,
            state=self.state,
            original_text=self.original_text,
            modified_text=self.modified_text,
            changed_lines=sorted(self._changed_lines),
            has_pending_changes=self.has_pending_changes,
        )
