"""Services module - Business logic layer"""

from .config_manager import ConfigManager
from .diff_engine import DiffEngine, split_lines
from .diff_session import DiffSession
from .llm_service import LLMService, call_llm
from .note_formatter import MalformedResponseError, NoteFormatter
from .session_store import DiffSessionStore
from .suggestion_store import SuggestionStore

__all__ = [
    "ConfigManager",
    "DiffEngine",
    "split_lines",
    "DiffSession",
    "DiffSessionStore",
    "LLMService",
    "call_llm",
    "NoteFormatter",
    "MalformedResponseError",
    "SuggestionStore",
]
