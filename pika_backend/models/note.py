"""Note formatting and suggestion models"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from .diff import SessionSnapshot


class NoteOutput(BaseModel):
    """Formatted note text plus follow-up suggestions from the model"""

    model_config = ConfigDict(populate_by_name=True)

    formatted_text: str = Field(alias="formatted")
    suggestions: list[str] = []


class NoteSuggestions(BaseModel):
    """Cached transform result for a single note"""

    formatted_text: str
    suggestions: list[str]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    text_modified: bool = False


class ApplySuggestionRequest(BaseModel):
    """Request to apply one of the note's suggestions"""

    suggestion: str
    suggestions: list[str] | None = None  # Falls back to the cached list


class TransformResponse(BaseModel):
    """Session state after a model-produced replacement"""

    session: SessionSnapshot
    suggestions: list[str]
    cached: bool = False
