"""Splits a module table into individual module records.

Walks the table at top level only, one ``key: factory`` entry at a time.
Supported factory shapes::

    123: function (e, t, n) { ... }
    123: (e, t, n) => { ... }
    123: (e, t) => ( ... )
    123: e => { ... }
    "./src/a.js": (e, t, n) => expression
    123(e, t, n) { ... }            (method shorthand)

An entry that matches none of them is skipped with a warning; the rest of
the table is still split.
"""

import logging

from bundle_decompiler.domain.constants import (
    ARROW_RE,
    ASYNC_PREFIX_RE,
    BARE_ARROW_PARAM_RE,
    FUNCTION_FACTORY_RE,
    MODULE_KEY_RE,
)
from bundle_decompiler.domain.enums import BodyKind, WarningKind
from bundle_decompiler.domain.models import ChunkMatch, ModuleRecord, Span, StageResult
from bundle_decompiler.extraction.scanner import (
    ScanError,
    find_closing,
    skip_trivia,
    split_top_level,
    strip_span,
)

logger = logging.getLogger(__name__)


class FactoryShapeError(ValueError):
    """A module table value is not a recognized factory."""


class ModuleSplitter:
    """Splits the module table of a ChunkMatch into ModuleRecords."""

    def split(self, text: str, match: ChunkMatch) -> StageResult[list[ModuleRecord]]:
        """Split the table at ``match.module_table_span`` into records.

        Args:
            text: The full bundle text the span refers to.
            match: Chunk match produced by the ChunkExtractor.

        Returns:
            StageResult whose value lists records in text order.
        """
        table_start, table_end = match.module_table_span
        records: list[ModuleRecord] = []
        warnings: list[str] = []

        try:
            entries = split_top_level(text, table_start + 1, table_end - 1)
        except ScanError as e:
            message = f"{WarningKind.INTERNAL_SCAN_ERROR.value}: module table could not be split ({e})"
            logger.warning(message)
            return StageResult([], [message], degraded=True)

        for span in entries:
            start, end = strip_span(text, span)
            if start >= end:
                continue
            try:
                records.append(self._parse_entry(text, start, end))
            except (FactoryShapeError, ScanError) as e:
                message = f"{WarningKind.EXTRACTION_FAILED.value}: module entry at offset {start} skipped ({e})"
                logger.warning(message)
                warnings.append(message)

        logger.debug("Split %d module(s) from table at %d", len(records), table_start)
        return StageResult(records, warnings, degraded=bool(warnings))

    # ── Entry Parsing ────────────────────────────────────────────────────

    def _parse_entry(self, text: str, start: int, end: int) -> ModuleRecord:
        key = MODULE_KEY_RE.match(text, start, end)
        if not key:
            raise FactoryShapeError('key is not a numeric, quoted or identifier literal')

        module_id = key.group('number') or key.group('string') or key.group('ident')
        if module_id is None:
            module_id = ''

        cursor = skip_trivia(text, key.end(), end)
        if cursor < end and text[cursor] == ':':
            value_start = skip_trivia(text, cursor + 1, end)
            params, body_span, body_kind, factory_end = self._parse_factory(text, value_start, end)
        elif cursor < end and text[cursor] == '(':
            params, body_span, body_kind, factory_end = self._parse_block_function(text, cursor, end)
        else:
            raise FactoryShapeError(f"expected ':' after key {module_id!r}")

        if skip_trivia(text, factory_end, end) != end:
            raise FactoryShapeError(f'unexpected text after factory of module {module_id!r}')

        return ModuleRecord(
            id=module_id,
            params=tuple(params),
            raw_body=text[body_span[0]:body_span[1]],
            original_span=(start, factory_end),
            body_kind=body_kind,
        )

    def _parse_factory(self, text: str, i: int, end: int) -> tuple[list[str], Span, BodyKind, int]:
        """Parse a factory value starting at ``i``.

        Returns:
            (params, body span, body kind, index just past the factory).
        """
        func = FUNCTION_FACTORY_RE.match(text, i, end)
        if func:
            return self._parse_block_function(text, func.end(), end)

        async_prefix = ASYNC_PREFIX_RE.match(text, i, end)
        if async_prefix:
            i = async_prefix.end()

        if i < end and text[i] == '(':
            params_close = self._closing(text, i, end, 'parameter list')
            params = self._split_params(text, i + 1, params_close)
            arrow_start = params_close + 1
        else:
            bare = BARE_ARROW_PARAM_RE.match(text, i, end)
            if not bare:
                raise FactoryShapeError('value is not a function or arrow factory')
            params = [bare.group('param')]
            arrow_start = bare.end()

        arrow = ARROW_RE.match(text, arrow_start, end)
        if not arrow:
            raise FactoryShapeError("expected '=>' after arrow parameters")

        body_start = skip_trivia(text, arrow.end(), end)
        if body_start >= end:
            raise FactoryShapeError('arrow factory has no body')

        if text[body_start] == '{':
            body_close = self._closing(text, body_start, end, 'factory body')
            return params, (body_start + 1, body_close), BodyKind.BLOCK, body_close + 1

        if text[body_start] == '(':
            body_close = self._closing(text, body_start, end, 'concise body')
            if skip_trivia(text, body_close + 1, end) == end:
                return params, (body_start + 1, body_close), BodyKind.EXPRESSION, body_close + 1

        return params, (body_start, end), BodyKind.EXPRESSION, end

    def _parse_block_function(self, text: str, params_open: int, end: int) -> tuple[list[str], Span, BodyKind, int]:
        """Parse ``(<params>) { <body> }`` starting at the parameter '('."""
        if params_open >= end or text[params_open] != '(':
            raise FactoryShapeError("expected '(' to open the parameter list")
        params_close = self._closing(text, params_open, end, 'parameter list')
        params = self._split_params(text, params_open + 1, params_close)

        body_open = skip_trivia(text, params_close + 1, end)
        if body_open >= end or text[body_open] != '{':
            raise FactoryShapeError("expected '{' to open the factory body")
        body_close = self._closing(text, body_open, end, 'factory body')
        return params, (body_open + 1, body_close), BodyKind.BLOCK, body_close + 1

    @staticmethod
    def _closing(text: str, open_index: int, end: int, what: str) -> int:
        close = find_closing(text, open_index, end)
        if close is None:
            raise FactoryShapeError(f'unbalanced {what}')
        return close

    @staticmethod
    def _split_params(text: str, start: int, end: int) -> list[str]:
        params = []
        for span in split_top_level(text, start, end):
            s, e = strip_span(text, span)
            if s < e:
                params.append(text[s:e])
        return params


def split_modules(text: str, match: ChunkMatch) -> StageResult[list[ModuleRecord]]:
    """Functional form of ModuleSplitter.split."""
    return ModuleSplitter().split(text, match)
