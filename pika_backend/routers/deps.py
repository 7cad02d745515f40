"""Shared FastAPI dependencies"""

from __future__ import annotations

from fastapi import Request

from pika_backend.services.config_manager import ConfigManager
from pika_backend.services.note_formatter import NoteFormatter
from pika_backend.services.session_store import DiffSessionStore
from pika_backend.services.suggestion_store import SuggestionStore


def get_session_store(request: Request) -> DiffSessionStore:
    return request.app.state.session_store


def get_suggestion_store(request: Request) -> SuggestionStore:
    return request.app.state.suggestion_store


def get_note_formatter() -> NoteFormatter:
    """Build a formatter from the latest configuration"""
    config = ConfigManager.get_instance().get_config()
    return NoteFormatter.from_config(config)
