"""
Suggestion Store - Per-note cache of the last formatting result
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pika_backend.models.note import NoteSuggestions

_cache_adapter = TypeAdapter(dict[str, NoteSuggestions])


class SuggestionStore:
    """Keep formatted text and suggestions per note, persisted as JSON"""

    def __init__(self, storage_file: Path):
        self._storage_file = Path(storage_file)
        self._cache: dict[str, NoteSuggestions] = self._load_all()

    def _load_all(self) -> dict[str, NoteSuggestions]:
        if not self._storage_file.exists():
            return {}
        try:
            cache = _cache_adapter.validate_json(self._storage_file.read_bytes())
        except (OSError, ValidationError) as e:
            print(f"[SuggestionStore] Error loading suggestions: {e}")
            return {}
        print(f"[SuggestionStore] Loaded suggestions for {len(cache)} notes")
        return cache

    def flush(self):
        """Write the whole cache to disk"""
        self._storage_file.parent.mkdir(parents=True, exist_ok=True)
        data = {note_id: entry.model_dump(mode="json") for note_id, entry in self._cache.items()}
        try:
            with open(self._storage_file, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save suggestions: {e}")

    def save(
        self,
        note_id: str,
        formatted_text: str,
        suggestions: list[str],
        text_modified: bool = False,
    ) -> NoteSuggestions:
        entry = NoteSuggestions(
            formatted_text=formatted_text,
            suggestions=suggestions,
            text_modified=text_modified,
        )
        self._cache[note_id] = entry
        self.flush()
        return entry

    def load(self, note_id: str) -> NoteSuggestions | None:
        return self._cache.get(note_id)

    def has(self, note_id: str) -> bool:
        return note_id in self._cache

    def mark_text_modified(self, note_id: str) -> bool:
        """Flag a note's suggestions as stale after its text moved away from them"""
        entry = self._cache.get(note_id)
        if entry is None:
            return False
        self._cache[note_id] = entry.model_copy(update={"text_modified": True})
        self.flush()
        return True

    def delete(self, note_id: str) -> bool:
        if self._cache.pop(note_id, None) is None:
            return False
        self.flush()
        return True
