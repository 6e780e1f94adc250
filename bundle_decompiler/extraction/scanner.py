"""Depth-aware scanning over JavaScript source text.

A small stack machine that walks code while skipping string, template,
comment and regular-expression literals, so bracket matching and top-level
comma splitting are not fooled by delimiters that appear inside them.
Every step advances at least one character and regex literals are capped
in length, so a scan is bounded by the size of the scanned region.
"""

from typing import Iterator

from bundle_decompiler.domain.constants import (
    CONDITION_KEYWORDS,
    IDENTIFIER_RE,
    REGEX_PRECEDING_KEYWORDS,
    REGEX_PRECEDING_PUNCTUATORS,
)
from bundle_decompiler.domain.models import Span

BRACKET_PAIRS = {'(': ')', '[': ']', '{': '}'}
CLOSERS = frozenset(BRACKET_PAIRS.values())

_WHITESPACE = frozenset(' \t\r\n\f\v\u00a0\ufeff\u2028\u2029')
_SUBSTITUTION = '${'
_CONDITION = '(cond)'
MAX_REGEX_LENGTH = 4096


class ScanError(Exception):
    """Bracket structure could not be followed."""

    def __init__(self, message: str, index: int):
        super().__init__(f"{message} at offset {index}")
        self.index = index


class StructureScanner:
    """Iterates the structural characters of a code region.

    Yields ``(index, char, depth)`` for every bracket, comma and colon that
    sits in code. An opener is reported at the depth outside it and its
    closer at the same depth, so a matched pair shares one depth value.
    After iteration, ``balanced`` tells whether every opener was closed and
    ``code_end`` is the index just past the last token that is not
    whitespace or a comment.

    Raises:
        ScanError: On a closer that does not match the innermost opener.
    """

    def __init__(self, text: str, start: int = 0, end: int | None = None):
        self.text = text
        self.start = start
        self.end = len(text) if end is None else min(end, len(text))
        self.balanced = False
        self.code_end = start

    def __iter__(self) -> Iterator[tuple[int, str, int]]:
        text, end = self.text, self.end
        stack: list[str] = []
        in_template = False
        regex_allowed = True
        # Keyword right before the current token, unless it was a member name
        keyword = None
        after_dot = False
        i = self.start
        self.balanced = False
        self.code_end = self.start

        while i < end:
            ch = text[i]

            if in_template:
                if ch == '\\':
                    i += 2
                elif ch == '`':
                    in_template = False
                    regex_allowed = False
                    i += 1
                elif ch == '$' and text.startswith('{', i + 1) and i + 1 < end:
                    stack.append(_SUBSTITUTION)
                    in_template = False
                    regex_allowed = True
                    i += 2
                else:
                    i += 1
                self.code_end = min(i, end)
                continue

            if ch in _WHITESPACE:
                i += 1
                continue

            if ch == '/':
                nxt = text[i + 1] if i + 1 < end else ''
                if nxt == '/' or nxt == '*':
                    i = skip_comment(text, i, end)
                    continue

            previous_keyword, keyword = keyword, None
            previous_dot, after_dot = after_dot, False

            if ch == '"' or ch == "'":
                i = skip_string(text, i, end)
                regex_allowed = False
            elif ch == '`':
                in_template = True
                i += 1
            elif ch == '/':
                stop = skip_regex(text, i, end) if regex_allowed else None
                if stop is not None:
                    i = stop
                    regex_allowed = False
                else:
                    regex_allowed = True
                    i += 1
            elif ch in BRACKET_PAIRS:
                yield i, ch, len(stack)
                if ch == '(' and previous_keyword in CONDITION_KEYWORDS:
                    stack.append(_CONDITION)
                else:
                    stack.append(BRACKET_PAIRS[ch])
                regex_allowed = True
                i += 1
            elif ch in CLOSERS:
                if not stack:
                    raise ScanError(f"Unexpected '{ch}'", i)
                expected = stack.pop()
                if expected == _SUBSTITUTION:
                    if ch != '}':
                        raise ScanError(f"Expected '}}' to close template substitution, found '{ch}'", i)
                    in_template = True
                    i += 1
                    self.code_end = i
                    continue
                closer = ')' if expected == _CONDITION else expected
                if closer != ch:
                    raise ScanError(f"Expected '{closer}' but found '{ch}'", i)
                yield i, ch, len(stack)
                # A statement may follow a block or a control-flow head
                regex_allowed = ch == '}' or expected == _CONDITION
                i += 1
            else:
                word = IDENTIFIER_RE.match(text, i, end)
                if word:
                    if not previous_dot:
                        keyword = word.group()
                    regex_allowed = keyword in REGEX_PRECEDING_KEYWORDS
                    i = word.end()
                else:
                    if ch == ',' or ch == ':':
                        yield i, ch, len(stack)
                    regex_allowed = ch in REGEX_PRECEDING_PUNCTUATORS
                    after_dot = ch == '.'
                    i += 1

            self.code_end = min(i, end)

        self.balanced = not stack and not in_template


# ── Literal Skipping ────────────────────────────────────────────────────

def skip_string(text: str, i: int, end: int) -> int:
    """Return the index just past the quoted string starting at ``i``."""
    quote = text[i]
    i += 1
    while i < end:
        ch = text[i]
        if ch == '\\':
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == '\n':
            # Unterminated on this line; resume scanning as code.
            return i
        i += 1
    return end


def skip_comment(text: str, i: int, end: int) -> int:
    """Return the index just past the line or block comment at ``i``."""
    if text.startswith('//', i):
        newline = text.find('\n', i + 2, end)
        return end if newline == -1 else newline + 1
    close = text.find('*/', i + 2, end)
    return end if close == -1 else close + 2


def skip_regex(text: str, i: int, end: int) -> int | None:
    """Return the index past the regex literal at ``i``, or None if it is not one."""
    j = i + 1
    in_class = False
    end = min(end, i + MAX_REGEX_LENGTH)
    while j < end:
        ch = text[j]
        if ch == '\\':
            j += 2
            continue
        if ch == '\n' or ch == '\r':
            return None
        if in_class:
            if ch == ']':
                in_class = False
        elif ch == '[':
            in_class = True
        elif ch == '/':
            if j == i + 1:
                return None
            flags = IDENTIFIER_RE.match(text, j + 1, end)
            return flags.end() if flags else j + 1
        j += 1
    return None


def skip_trivia(text: str, i: int, end: int | None = None) -> int:
    """Return the first index at or after ``i`` that is not whitespace or a comment."""
    end = len(text) if end is None else end
    while i < end:
        ch = text[i]
        if ch in _WHITESPACE:
            i += 1
        elif ch == '/' and i + 1 < end and text[i + 1] in '/*':
            i = skip_comment(text, i, end)
        else:
            break
    return i


# ── Queries ─────────────────────────────────────────────────────────────

def find_closing(text: str, open_index: int, end: int | None = None) -> int | None:
    """Find the bracket matching the opener at ``open_index``.

    Returns:
        Index of the matching closer, or None when ``open_index`` is not an
        opener or the scan runs off the end without balancing.

    Raises:
        ScanError: When a mismatched closer is met first.
    """
    if open_index >= len(text) or text[open_index] not in BRACKET_PAIRS:
        return None
    for index, ch, depth in StructureScanner(text, open_index, end):
        if depth == 0 and ch in CLOSERS:
            return index
    return None


def split_top_level(text: str, start: int, end: int, separator: str = ',') -> list[Span]:
    """Split ``text[start:end]`` on separators that sit outside any brackets.

    Returns:
        Spans of each segment, separators excluded. A region with no
        separator yields a single span.

    Raises:
        ScanError: When the region itself is not bracket-balanced.
    """
    spans: list[Span] = []
    segment_start = start
    scanner = StructureScanner(text, start, end)
    for index, ch, depth in scanner:
        if depth == 0 and ch == separator:
            spans.append((segment_start, index))
            segment_start = index + 1
    if not scanner.balanced:
        raise ScanError('Unbalanced region', end)
    spans.append((segment_start, end))
    return spans


def strip_span(text: str, span: Span) -> Span:
    """Shrink a span so it excludes surrounding whitespace and comments."""
    start, end = span
    start = skip_trivia(text, start, end)
    scanner = StructureScanner(text, start, end)
    try:
        for _ in scanner:
            pass
    except ScanError:
        while end > start and text[end - 1] in _WHITESPACE:
            end -= 1
        return start, end
    return start, max(start, scanner.code_end)
