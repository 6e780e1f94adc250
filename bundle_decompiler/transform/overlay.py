"""Span-based text edits over an immutable source string."""

from bundle_decompiler.domain.models import Span


class SpanOverlay:
    """Collects non-overlapping replacements and renders them on demand.

    The source string is never modified; ``render`` builds a new string for
    any region, applying only the edits that fall inside it.
    """

    def __init__(self, source: str):
        self.source = source
        self._edits: dict[int, tuple[int, str]] = {}

    def __len__(self) -> int:
        return len(self._edits)

    def overwrite(self, start: int, end: int, replacement: str) -> None:
        if not 0 <= start < end <= len(self.source):
            raise ValueError(f"Invalid span ({start}, {end})")
        existing = self._edits.get(start)
        if existing is not None:
            if existing == (end, replacement):
                return
            raise ValueError(f"Overlapping edit at offset {start}")
        for other_start, (other_end, _) in self._edits.items():
            if start < other_end and other_start < end:
                raise ValueError(f"Overlapping edit at offset {start}")
        self._edits[start] = (end, replacement)

    def render(self, span: Span | None = None) -> str:
        start, end = span if span else (0, len(self.source))
        parts = []
        cursor = start
        for edit_start in sorted(self._edits):
            edit_end, replacement = self._edits[edit_start]
            if edit_start < start or edit_end > end:
                continue
            parts.append(self.source[cursor:edit_start])
            parts.append(replacement)
            cursor = edit_end
        parts.append(self.source[cursor:end])
        return ''.join(parts)
