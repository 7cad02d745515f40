"""
Note Formatter - Turn raw notes into Markdown plus follow-up suggestions
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from pika_backend.models.note import NoteOutput

from .llm_service import LLMService


class MalformedResponseError(Exception):
    """The model reply did not contain a usable note output"""


TRANSFORM_INSTRUCTIONS = """You are a writing assistant for a note-taking app.

Take the user's input, even if it is unstructured, disorganized or poorly formatted, \
and return a clean, structured Markdown version of it under the key "formatted".

Use Markdown to improve readability:
- Use headings (#, ##, ###) for sections or titles.
- Use bullet points or numbered lists for grouped content.
- Use links where URLs or references are mentioned.
- Use tables when comparing structured data.
- Preserve existing formatting if it is correct and useful.

If the input is already well formatted, return it unchanged under "formatted".
Do NOT invent content; only reformat or enhance what is present.

Also provide up to {max_suggestions} concise, context-aware suggestions in English under \
the key "suggestions" that could improve, extend or deepen the note (max \
{max_length} characters each), for example:
- Add source or reference
- Make a checklist
- Create a comparison table

Respond strictly with JSON:
{{"formatted": "...", "suggestions": ["...", "..."]}}"""


APPLY_INSTRUCTIONS = """You are a writing assistant for a note-taking app.

TASK:
1. Apply the selected suggestion to the current note text.
2. Return the updated text in well-formatted Markdown under the key "formatted".
3. Return suggestions under the key "suggestions":
   - Keep the suggestions that were NOT selected exactly as provided.
   - Add 1 NEW relevant suggestion, distinct from all previous ones.
   - Keep each suggestion under {max_length} characters.

Do NOT mention that changes were made or explain what you did.

Respond ONLY with JSON:
{{"formatted": "...", "suggestions": ["...", "..."]}}"""


def parse_json_object(response: str) -> dict[str, Any]:
    """Parse a JSON object from a model reply, handling code fences"""
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", response)
    json_str = fenced.group(1).strip() if fenced else response.strip()

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        brace_start = json_str.find("{")
        brace_end = json_str.rfind("}") + 1
        if brace_start < 0 or brace_end <= brace_start:
            raise MalformedResponseError(f"Failed to parse JSON: {e}") from e
        try:
            data = json.loads(json_str[brace_start:brace_end])
        except json.JSONDecodeError as inner:
            raise MalformedResponseError(f"Failed to parse JSON: {inner}") from inner

    if not isinstance(data, dict):
        raise MalformedResponseError("Expected a JSON object")
    return data


class NoteFormatter:
    """Format notes and apply suggestions through the configured LLM"""

    def __init__(self, llm_service: LLMService, config: dict[str, Any] | None = None):
        self.llm_service = llm_service
        formatting = (config or {}).get("formatting", {})
        self.max_suggestions = formatting.get("maxSuggestions", 3)
        self.max_suggestion_length = formatting.get("maxSuggestionLength", 30)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "NoteFormatter":
        return cls(LLMService(config), config)

    async def transform_note(self, raw_text: str) -> NoteOutput:
        """Reformat raw note text; blank input short-circuits without a model call"""
        if not raw_text.strip():
            return NoteOutput(formatted_text="", suggestions=[])

        instructions = TRANSFORM_INSTRUCTIONS.format(
            max_suggestions=self.max_suggestions,
            max_length=self.max_suggestion_length,
        )
        response = await self.llm_service.generate_response(
            raw_text, instructions=instructions, json_output=True
        )
        output = self._parse_output(response)
        print(f"[NoteFormatter] Transformed note, {len(output.suggestions)} suggestions")
        return output

    async def apply_suggestion(
        self,
        current_text: str,
        suggestions: list[str],
        selected: str,
    ) -> NoteOutput:
        """Apply one suggestion, keeping the others and asking for a new one"""
        remaining = [s for s in suggestions if s != selected]
        kept = "\n".join(f"[{n}] {s}" for n, s in enumerate(remaining, start=1)) or "(none)"

        prompt = f"""CURRENT TEXT:
{current_text}

SELECTED SUGGESTION TO APPLY:
{selected}

NON-SELECTED SUGGESTIONS TO KEEP EXACTLY AS IS:
{kept}"""

        instructions = APPLY_INSTRUCTIONS.format(max_length=self.max_suggestion_length)
        response = await self.llm_service.generate_response(
            prompt, instructions=instructions, json_output=True
        )
        output = self._parse_output(response)

        missing = set(remaining) - set(output.suggestions)
        if missing:
            print(f"[NoteFormatter] Model dropped kept suggestions: {sorted(missing)}")
        print(f"[NoteFormatter] Applied suggestion: {selected}")
        return output

    def _parse_output(self, response: str) -> NoteOutput:
        data = parse_json_object(response)
        try:
            output = NoteOutput.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"Unexpected note output: {e}") from e

        output.suggestions = [s.strip() for s in output.suggestions if s.strip()][
            : self.max_suggestions
        ]
        return output
