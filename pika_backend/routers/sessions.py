"""Per-note review workflow endpoints"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pika_backend.models.diff import (
    AcceptResponse,
    ModifyTextRequest,
    RejectResponse,
    SessionSnapshot,
    StartSessionRequest,
)
from pika_backend.models.note import ApplySuggestionRequest, NoteOutput, TransformResponse
from pika_backend.services.config_manager import ConfigManager
from pika_backend.services.diff_session import DiffSession
from pika_backend.services.note_formatter import MalformedResponseError, NoteFormatter
from pika_backend.services.session_store import DiffSessionStore
from pika_backend.services.suggestion_store import SuggestionStore

from .deps import get_note_formatter, get_session_store, get_suggestion_store

router = APIRouter()


def _get_session(store: DiffSessionStore, note_id: str) -> DiffSession:
    try:
        return store.get(note_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No open session for note '{note_id}'")


async def _run_formatter(operation) -> NoteOutput:
    """Await a formatter call and map its failures onto HTTP errors"""
    try:
        return await operation
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MalformedResponseError as e:
        raise HTTPException(status_code=502, detail=f"Malformed model response: {e}")
    except Exception as e:
        print(f"[Sessions] Formatting failed: {e}")
        raise HTTPException(status_code=502, detail=f"Formatting failed: {e}")



@router.post("/{note_id}/start", response_model=SessionSnapshot)
async def start_session(
    note_id: str,
    request: StartSessionRequest,
    store: DiffSessionStore = Depends(get_session_store),
) -> SessionSnapshot:
    """Open (or restart) the review round for a note"""
    settings = ConfigManager.get_instance().diff_settings()
    async with store.lock(note_id):
        session = store.open(note_id, request.original_text, settings)
        return session.snapshot()


@router.get("/{note_id}", response_model=SessionSnapshot)
async def get_session(
    note_id: str,
    store: DiffSessionStore = Depends(get_session_store),
) -> SessionSnapshot:
    return _get_session(store, note_id).snapshot()


@router.put("/{note_id}/modified", response_model=SessionSnapshot)
async def set_modified_text(
    note_id: str,
    request: ModifyTextRequest,
    store: DiffSessionStore = Depends(get_session_store),
) -> SessionSnapshot:
    """Replace the candidate text (typing or pasted replacement)"""
    async with store.lock(note_id):
        session = _get_session(store, note_id)
        session.set_modified_text(request.text)
        return session.snapshot()


@router.post("/{note_id}/accept", response_model=AcceptResponse)
async def accept_changes(
    note_id: str,
    store: DiffSessionStore = Depends(get_session_store),
) -> AcceptResponse:
    """Commit the candidate text; the client persists committed_text"""
    async with store.lock(note_id):
        session = _get_session(store, note_id)
        committed = session.accept()
        return AcceptResponse(committed_text=committed, session=session.snapshot())


@router.post("/{note_id}/reject", response_model=RejectResponse)
async def reject_changes(
    note_id: str,
    store: DiffSessionStore = Depends(get_session_store),
    suggestion_store: SuggestionStore = Depends(get_suggestion_store),
) -> RejectResponse:
    """Discard the candidate text and hand back the restored baseline"""
    async with store.lock(note_id):
        session = _get_session(store, note_id)
        restored = session.reject()
        suggestion_store.mark_text_modified(note_id)
        return RejectResponse(restored_text=restored, session=session.snapshot())


@router.delete("/{note_id}")
async def close_session(
    note_id: str,
    store: DiffSessionStore = Depends(get_session_store),
) -> dict:
    async with store.lock(note_id):
        closed = store.close(note_id)
    if not closed:
        raise HTTPException(status_code=404, detail=f"No open session for note '{note_id}'")
    return {"status": "success", "message": f"Session for '{note_id}' closed"}


@router.post("/{note_id}/transform", response_model=TransformResponse)
async def transform_note(
    note_id: str,
    store: DiffSessionStore = Depends(get_session_store),
    suggestion_store: SuggestionStore = Depends(get_suggestion_store),
    formatter: NoteFormatter = Depends(get_note_formatter),
) -> TransformResponse:
    """Format the current text with the model and put the result up for review"""
    # Held across the model call so edits queue behind the formatted result
    async with store.lock(note_id):
        session = _get_session(store, note_id)

        cached = suggestion_store.load(note_id)
        if cached and not cached.text_modified and cached.formatted_text == session.modified_text:
            return TransformResponse(
                session=session.snapshot(),
                suggestions=cached.suggestions,
                cached=True,
            )

        output = await _run_formatter(formatter.transform_note(session.modified_text))

        session.set_modified_text(output.formatted_text)
        suggestion_store.save(note_id, output.formatted_text, output.suggestions)
        return TransformResponse(session=session.snapshot(), suggestions=output.suggestions)


@router.post("/{note_id}/apply-suggestion", response_model=TransformResponse)
async def apply_suggestion(
    note_id: str,
    request: ApplySuggestionRequest,
    store: DiffSessionStore = Depends(get_session_store),
    suggestion_store: SuggestionStore = Depends(get_suggestion_store),
    formatter: NoteFormatter = Depends(get_note_formatter),
) -> TransformResponse:
    """Apply a suggestion to the current text and put the result up for review"""
    async with store.lock(note_id):
        session = _get_session(store, note_id)

        suggestions = request.suggestions
        if suggestions is None:
            cached = suggestion_store.load(note_id)
            suggestions = cached.suggestions if cached else []

        output = await _run_formatter(
            formatter.apply_suggestion(session.modified_text, suggestions, request.suggestion)
        )

        session.set_modified_text(output.formatted_text)
        suggestion_store.save(note_id, output.formatted_text, output.suggestions)
        return TransformResponse(session=session.snapshot(), suggestions=output.suggestions)
