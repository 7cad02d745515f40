"""
Diff Engine - Line-level change detection for note review
"""

from __future__ import annotations

from collections.abc import Sequence

from pika_backend.models.diff import ChangeKind, DiffSettings, LineChange


def split_lines(text: str) -> list[str]:
    """Split text on newlines, keeping empty and trailing lines"""
    return text.split("\n")


class DiffEngine:
    """Compute which lines of a modified note should be highlighted"""

    def __init__(self, settings: DiffSettings | None = None):
        self.settings = settings or DiffSettings()

    def compute_changed_lines(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str],
    ) -> set[int]:
        """Return indices into new_lines considered changed relative to old_lines"""
        changes = self.align(old_lines, new_lines)
        changed = self._mark_changes(changes, len(new_lines))

        # Identical sequences: skip the heuristics entirely
        if not changed:
            return changed

        changed |= self._expand_structural_blocks(new_lines, changed)
        self._expand_reference_blocks(new_lines, changed)

        if self._is_rewrite(old_lines, new_lines):
            changed.update(range(len(new_lines)))

        return changed

    def align(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str],
    ) -> list[LineChange]:
        """Greedy alignment that resyncs on the nearest equal pair within the lookahead window"""
        changes: list[LineChange] = []
        old_count = len(old_lines)
        new_count = len(new_lines)
        i = j = 0

        while i < old_count or j < new_count:
            if i < old_count and j < new_count and old_lines[i] == new_lines[j]:
                i += 1
                j += 1
                continue

            resync = self._find_resync(old_lines, new_lines, i, j)
            next_i, next_j = resync if resync else (i, j)

            while i < next_i:
                changes.append(LineChange(kind=ChangeKind.DELETE, index=j, line=old_lines[i]))
                i += 1
            while j < next_j:
                changes.append(LineChange(kind=ChangeKind.INSERT, index=j, line=new_lines[j]))
                j += 1

            # No resync point: step one line on each side that still has lines
            if resync is None:
                if i < old_count:
                    changes.append(LineChange(kind=ChangeKind.DELETE, index=j, line=old_lines[i]))
                    i += 1
                if j < new_count:
                    changes.append(LineChange(kind=ChangeKind.INSERT, index=j, line=new_lines[j]))
                    j += 1

        return changes

    def _find_resync(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str],
        i: int,
        j: int,
    ) -> tuple[int, int] | None:
        """First equal pair scanning old offsets outer, new offsets inner"""
        window = self.settings.lookahead_window
        for oi in range(i, min(i + window, len(old_lines))):
            for nj in range(j, min(j + window, len(new_lines))):
                if old_lines[oi] == new_lines[nj]:
                    return oi, nj
        return None

    def _mark_changes(self, changes: list[LineChange], line_count: int) -> set[int]:
        """Turn tagged changes into highlighted indices, padding insertions with context"""
        padding = self.settings.context_lines
        changed: set[int] = set()

        for change in changes:
            if change.kind == ChangeKind.DELETE:
                # Tail deletions attach to the last surviving line
                if change.index < line_count:
                    changed.add(change.index)
                elif line_count > 0:
                    changed.add(line_count - 1)
            else:
                start = max(0, change.index - padding)
                end = min(line_count - 1, change.index + padding)
                changed.update(range(start, end + 1))

        return changed

    # ========== Block Heuristics ==========

    def _is_heading(self, line: str) -> bool:
        return line.startswith(self.settings.heading_marker)

    def _is_bullet(self, line: str) -> bool:
        return any(line.startswith(marker) for marker in self.settings.bullet_markers)

    def _has_reference(self, line: str) -> bool:
        return any(keyword in line for keyword in self.settings.reference_keywords)

    def _has_link(self, line: str) -> bool:
        return any(marker in line for marker in self.settings.link_markers)

    def _opens_block(self, line: str) -> bool:
        return self._is_heading(line) or self._is_bullet(line) or self._has_reference(line)

    def _expand_structural_blocks(self, lines: Sequence[str], changed: set[int]) -> set[int]:
        """Absorb the rest of a heading, list or reference block after a changed opener"""
        absorbed: set[int] = set()

        for index in sorted(changed):
            if not self._opens_block(lines[index]):
                continue
            nxt = index + 1
            while nxt < len(lines):
                line = lines[nxt]
                if not line.strip(" \t") or self._is_heading(line):
                    break
                absorbed.add(nxt)
                nxt += 1

        return absorbed

    def _expand_reference_blocks(self, lines: Sequence[str], changed: set[int]) -> None:
        """Mark whole citation blocks around every line carrying a reference keyword"""
        i = 0
        while i < len(lines):
            if not self._has_reference(lines[i]):
                i += 1
                continue

            # Walk back to the block boundary; a heading belongs to the block
            start = i
            while start > 0:
                prev = lines[start - 1]
                if self._is_heading(prev):
                    start -= 1
                    break
                if prev == "":
                    break
                start -= 1

            end = i
            while end < len(lines) - 1:
                nxt = lines[end + 1]
                if nxt == "" or self._is_heading(nxt):
                    break
                if self._has_reference(nxt) or self._is_bullet(nxt) or self._has_link(nxt):
                    end += 1
                else:
                    break

            changed.update(range(start, end + 1))
            i = end + 1

    def _is_rewrite(self, old_lines: Sequence[str], new_lines: Sequence[str]) -> bool:
        """True when most new lines appear nowhere in the old text"""
        if not old_lines or not new_lines:
            return False
        known = set(old_lines)
        unseen = sum(1 for line in new_lines if line not in known)
        return unseen / len(new_lines) > self.settings.rewrite_threshold
