"""Routers module - FastAPI route handlers"""

from . import config, diff, sessions, suggestions

__all__ = ["config", "diff", "sessions", "suggestions"]
