"""
Session Store - One diff session per open note
"""

from __future__ import annotations

import asyncio

from pika_backend.models.diff import DiffSettings

from .diff_engine import DiffEngine
from .diff_session import DiffSession


class DiffSessionStore:
    """Own the diff sessions of the notes currently open in editors.

    Request handlers that read a session, await something, then write it
    back must hold ``lock(note_id)`` for the whole sequence.
    """

    def __init__(self, settings: DiffSettings | None = None):
        self.settings = settings or DiffSettings()
        self._sessions: dict[str, DiffSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def open(
        self,
        note_id: str,
        original_text: str,
        settings: DiffSettings | None = None,
    ) -> DiffSession:
        """Start a review round for a note, reusing its session if already open"""
        if settings is not None:
            self.settings = settings

        session = self._sessions.get(note_id)
        if session is None:
            session = DiffSession(DiffEngine(self.settings), note_id=note_id)
            self._sessions[note_id] = session
        elif session.engine.settings != self.settings:
            session.engine = DiffEngine(self.settings)

        session.start(original_text)
        return session

    def get(self, note_id: str) -> DiffSession:
        """Get an open session; raises KeyError when the note has none"""
        return self._sessions[note_id]

    def lock(self, note_id: str) -> asyncio.Lock:
        """Per-note lock serializing writes to that note's session"""
        lock = self._locks.get(note_id)
        if lock is None:
            lock = self._locks[note_id] = asyncio.Lock()
        return lock

    def close(self, note_id: str) -> bool:
        self._locks.pop(note_id, None)
        return self._sessions.pop(note_id, None) is not None

    def note_ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
