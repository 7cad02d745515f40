"""Stateless diff endpoints"""

from __future__ import annotations

from fastapi import APIRouter

from pika_backend.models.diff import (
    AlignmentResponse,
    ChangedLinesRequest,
    ChangedLinesResponse,
)
from pika_backend.services.config_manager import ConfigManager
from pika_backend.services.diff_engine import DiffEngine, split_lines

router = APIRouter()


def _engine() -> DiffEngine:
    return DiffEngine(ConfigManager.get_instance().diff_settings())


@router.post("/changed-lines", response_model=ChangedLinesResponse)
async def changed_lines(request: ChangedLinesRequest) -> ChangedLinesResponse:
    """Compute highlighted line indices for a pair of texts"""
    new_lines = split_lines(request.modified_text)
    changed = _engine().compute_changed_lines(split_lines(request.original_text), new_lines)

    return ChangedLinesResponse(
        changed_lines=sorted(changed),
        has_pending_changes=bool(changed),
        line_count=len(new_lines),
    )


@router.post("/alignment", response_model=AlignmentResponse)
async def alignment(request: ChangedLinesRequest) -> AlignmentResponse:
    """Return the raw insert/delete changes before block expansion"""
    changes = _engine().align(
        split_lines(request.original_text),
        split_lines(request.modified_text),
    )
    return AlignmentResponse(changes=changes)
