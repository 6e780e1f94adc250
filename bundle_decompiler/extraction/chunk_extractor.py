"""Locates chunk push calls and isolates their module tables.

A webpack 5 chunk registers itself as::

    (self["webpackChunkapp"] = self["webpackChunkapp"] || []).push([
        [179],                       // chunk ids
        {5171: (e, t, n) => {...}},  // module table
        runtime                      // optional
    ])

The module table is delimited with the depth-aware scanner rather than a
regex, so braces inside strings, templates, regexes and nested objects in
factory bodies never end the table early.
"""

import logging
import re

from bundle_decompiler.domain.constants import CHUNK_PUSH_PATTERNS
from bundle_decompiler.domain.enums import WarningKind
from bundle_decompiler.domain.models import ChunkMatch, StageResult
from bundle_decompiler.extraction.scanner import (
    ScanError,
    find_closing,
    skip_trivia,
    split_top_level,
    strip_span,
)

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'\d+')


def _failure(reason: str) -> str:
    return f"{WarningKind.EXTRACTION_FAILED.value}: {reason}"


class ChunkExtractor:
    """Finds chunk push calls and returns their module-table spans."""

    def extract(self, text: str) -> ChunkMatch | None:
        """Extract the module table of the earliest chunk push.

        Returns:
            The ChunkMatch, or None when no push idiom is present or its
            table cannot be delimited.
        """
        matches = self.extract_all(text, limit=1).value
        return matches[0] if matches else None

    def extract_all(self, text: str, limit: int | None = None) -> StageResult[list[ChunkMatch]]:
        """Extract the module tables of every chunk push, in text order.

        Scanning resumes after each table found. A push whose table cannot
        be delimited ends the search; the tables found before it are kept
        and the failure is reported as a warning.
        """
        if not isinstance(text, str):
            return StageResult([], [_failure('input is not text')], degraded=True)

        results: list[ChunkMatch] = []
        warnings: list[str] = []
        pos = 0
        while limit is None or len(results) < limit:
            ids_open = self._find_next_push(text, pos)
            if ids_open is None:
                break
            try:
                match = self._extract_at(text, ids_open)
            except ScanError as e:
                logger.warning("Module table scan failed: %s", e)
                warnings.append(_failure(f'scan error ({e})'))
                break
            if isinstance(match, str):
                logger.warning("Chunk push at offset %d skipped: %s", ids_open, match)
                warnings.append(_failure(match))
                break
            results.append(match)
            pos = match.module_table_span[1]

        return StageResult(results, warnings, degraded=bool(warnings))

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _find_next_push(text: str, pos: int) -> int | None:
        """Return the index of the chunk-id array '[' of the next push at or after pos."""
        best: int | None = None
        for _, pattern in CHUNK_PUSH_PATTERNS:
            m = pattern.search(text, pos)
            if m and (best is None or m.start('ids') < best):
                best = m.start('ids')
        return best

    def _extract_at(self, text: str, ids_open: int) -> ChunkMatch | str:
        """ChunkMatch for the push whose id array opens at ids_open, or a failure reason."""
        ids_close = find_closing(text, ids_open)
        if ids_close is None:
            return f'unbalanced chunk id array at offset {ids_open}'

        chunk_ids = self._parse_chunk_ids(text, ids_open + 1, ids_close)

        cursor = skip_trivia(text, ids_close + 1)
        if cursor >= len(text) or text[cursor] != ',':
            return f'missing module table after chunk ids at offset {ids_close}'
        table_open = skip_trivia(text, cursor + 1)
        if table_open >= len(text) or text[table_open] != '{':
            return f'module table is not an object literal at offset {table_open}'

        table_close = find_closing(text, table_open)
        if table_close is None:
            return f'unbalanced module table at offset {table_open}'

        logger.debug("Chunk %s: module table spans %d..%d", chunk_ids, table_open, table_close + 1)
        return ChunkMatch(chunk_ids=chunk_ids, module_table_span=(table_open, table_close + 1))

    @staticmethod
    def _parse_chunk_ids(text: str, start: int, end: int) -> list[int | str]:
        ids: list[int | str] = []
        for span in split_top_level(text, start, end):
            s, e = strip_span(text, span)
            raw = text[s:e]
            if not raw:
                continue
            if _INT_RE.fullmatch(raw):
                ids.append(int(raw))
            else:
                ids.append(raw.strip('"\''))
        return ids


def extract_module_table(text: str) -> ChunkMatch | None:
    """Functional form of ChunkExtractor.extract."""
    return ChunkExtractor().extract(text)
