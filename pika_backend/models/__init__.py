"""Models module - Pydantic data models"""

from .diff import (
    AcceptResponse,
    AlignmentResponse,
    ChangedLinesRequest,
    ChangedLinesResponse,
    ChangeKind,
    DiffSettings,
    LineChange,
    ModifyTextRequest,
    RejectResponse,
    SessionSnapshot,
    SessionState,
    StartSessionRequest,
)
from .note import ApplySuggestionRequest, NoteOutput, NoteSuggestions, TransformResponse

__all__ = [
    # Diff models
    "ChangeKind",
    "LineChange",
    "DiffSettings",
    "SessionState",
    "SessionSnapshot",
    "ChangedLinesRequest",
    "ChangedLinesResponse",
    "AlignmentResponse",
    "StartSessionRequest",
    "ModifyTextRequest",
    "AcceptResponse",
    "RejectResponse",
    # Note models
    "NoteOutput",
    "NoteSuggestions",
    "ApplySuggestionRequest",
    "TransformResponse",
]
