"""Suggestion cache endpoints"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pika_backend.models.note import NoteSuggestions
from pika_backend.services.suggestion_store import SuggestionStore

from .deps import get_suggestion_store

router = APIRouter()


@router.get("/{note_id}", response_model=NoteSuggestions)
async def get_suggestions(
    note_id: str,
    store: SuggestionStore = Depends(get_suggestion_store),
) -> NoteSuggestions:
    entry = store.load(note_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"No suggestions saved for note '{note_id}'")
    return entry


@router.delete("/{note_id}")
async def delete_suggestions(
    note_id: str,
    store: SuggestionStore = Depends(get_suggestion_store),
) -> dict:
    if not store.delete(note_id):
        raise HTTPException(status_code=404, detail=f"No suggestions saved for note '{note_id}'")
    return {"status": "success", "message": "Suggestions deleted"}
