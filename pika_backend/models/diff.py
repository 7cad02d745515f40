"""Diff-related data models"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ChangeKind(str, Enum):
    """Kinds of line changes produced by the aligner"""

    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"  # reserved, the greedy aligner never emits it


class LineChange(BaseModel):
    """A single tagged change from the line alignment"""

    kind: ChangeKind
    index: int  # 0-indexed into the new text; deletions use the new cursor
    line: str
    previous_line: str | None = None


class DiffSettings(BaseModel):
    """Tunables for the line diff and its block-expansion heuristics"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lookahead_window: int = Field(default=10, ge=1)
    rewrite_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    context_lines: int = Field(default=1, ge=0)
    heading_marker: str = "##"
    bullet_markers: list[str] = ["-", "*"]
    reference_keywords: list[str] = ["Wikipedia", "wikipedia"]
    link_markers: list[str] = ["http"]


class SessionState(str, Enum):
    """Review state of a note's diff session"""

    CLEAN = "clean"
    REVIEWING = "reviewing"


class SessionSnapshot(BaseModel):
    """Read-only view of a diff session"""

    note_id: str | None = None
    state: SessionState
    original_text: str
    modified_text: str
    changed_lines: list[int] = []
    has_pending_changes: bool = False


class ChangedLinesRequest(BaseModel):
    """Request for a stateless changed-line computation"""

    original_text: str
    modified_text: str


class ChangedLinesResponse(BaseModel):
    """Changed-line indices into the modified text"""

    changed_lines: list[int]
    has_pending_changes: bool
    line_count: int


class AlignmentResponse(BaseModel):
    """Raw alignment output before any block expansion"""

    changes: list[LineChange]


class StartSessionRequest(BaseModel):
    """Request to begin a review round for a note"""

    original_text: str = ""


class ModifyTextRequest(BaseModel):
    """Request to replace the candidate text of a session"""

    text: str


class AcceptResponse(BaseModel):
    """Result of committing a review round"""

    committed_text: str
    session: SessionSnapshot


class RejectResponse(BaseModel):
    """Result of discarding a review round"""

    restored_text: str
    session: SessionSnapshot
