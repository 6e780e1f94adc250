"""Shared constants, regex patterns, and lookup tables.

Centralizes the chunk signatures, rename tables and formatter settings that
are shared across detection, extraction, transformation and output modules.
"""

import re

from bundle_decompiler.domain.enums import RenameContext

BUNDLE_FORMAT = 'Webpack 5'

FALLBACK_WARNING = f'{BUNDLE_FORMAT} parsing failed, using fallback'

# ── Chunk Signatures ────────────────────────────────────────────────────

# Global-object aliases webpack's JSONP runtime registers chunks on
SCOPE_ALIASES = ('self', 'window', 'globalThis', 'global', 'this')

_SCOPE = r'(?<![\w$.])(?P<scope>' + '|'.join(SCOPE_ALIASES) + r')'

# self["webpackChunkapp"] = self["webpackChunkapp"] || []
# self.webpackChunkapp = self.webpackChunkapp || []
_REGISTRATION = (
    _SCOPE
    + r'\s*(?:\[\s*(?P<quote>["\'])(?P<name>webpackChunk[\w$]*)(?P=quote)\s*\]|\.(?P<dotname>webpackChunk[\w$]*))'
    + r'\s*=\s*(?P=scope)\s*(?:\[\s*["\'](?P=name)["\']\s*\]|\.(?P=dotname))'
    + r'\s*\|\|\s*\[\s*\]'
)

# (registration).push([[<ids>], {<table>}])
NAMED_CHUNK_PUSH_RE = re.compile(
    _REGISTRATION + r'\s*\)?\s*\.push\(\s*\[\s*(?P<ids>\[)'
)

# self["webpackChunkapp"].push([[<ids>], {<table>}]) without the registration
INDEXED_CHUNK_PUSH_RE = re.compile(
    _SCOPE
    + r'\s*\[\s*(?P<quote>["\'])(?P<name>webpackChunk[\w$]*)(?P=quote)\s*\]'
    + r'\s*\.push\(\s*\[\s*(?P<ids>\[)'
)

CHUNK_PUSH_PATTERNS = (
    ('named', NAMED_CHUNK_PUSH_RE),
    ('indexed', INDEXED_CHUNK_PUSH_RE),
)

# ── Module Table Keys & Factories ───────────────────────────────────────

MODULE_KEY_RE = re.compile(
    r'\s*(?:(?P<number>\d+(?:\.\d+)?)|(?P<quote>["\'])(?P<string>(?:\\.|(?!(?P=quote)).)*)(?P=quote)|(?P<ident>[A-Za-z_$][\w$]*))\s*'
)
FUNCTION_FACTORY_RE = re.compile(r'(?:async\s+)?function\b\s*\*?\s*(?:[A-Za-z_$][\w$]*)?\s*(?=\()')
ARROW_RE = re.compile(r'\s*=>\s*')
BARE_ARROW_PARAM_RE = re.compile(r'(?:async\s+)?(?P<param>[A-Za-z_$][\w$]*)(?=\s*=>)')
ASYNC_PREFIX_RE = re.compile(r'async\s*(?=\()')

IDENTIFIER_RE = re.compile(r'[A-Za-z0-9_$]+')

# Keywords after which a '/' starts a regular expression, not a division
REGEX_PRECEDING_KEYWORDS = frozenset({
    'return', 'typeof', 'instanceof', 'in', 'of', 'new', 'delete', 'void',
    'throw', 'case', 'do', 'else', 'yield', 'await',
})
REGEX_PRECEDING_PUNCTUATORS = frozenset('(,=:[!&|?{};+-*%<>~^')

# Keywords whose parenthesized head may be followed by a statement
CONDITION_KEYWORDS = frozenset({'if', 'while', 'for', 'with'})

# ── Rename Tables ───────────────────────────────────────────────────────

RENAME_TABLES: dict[RenameContext, dict[str, str]] = {
    RenameContext.COMMON: {
        'e': 'module',
        't': 'exports',
        'n': 'require',
        'r': 'defineProperty',
        'o': 'object',
        'i': 'id',
        'a': 'args',
        's': 'string',
        'l': 'load',
        'd': 'define',
        'c': 'cache',
        'u': 'url',
        'f': 'fn',  # 'function' is a reserved word
        'p': 'path',
        'v': 'value',
        'm': 'moduleId',
        'h': 'hash',
        'g': 'global',
    },
    RenameContext.EVENT_HANDLER: {
        'e': 'event',
        't': 'event',
    },
    RenameContext.CALLBACK: {
        't': 'value',
        'a': 'newValue',
    },
}

EVENT_HANDLER_KEYS = frozenset({'click', 'submit'})
CALLBACK_KEYS = frozenset({'callback'})

# ── Formatter ───────────────────────────────────────────────────────────

BEAUTIFIER_SETTINGS = {
    'indent_size': 2,
    'indent_char': ' ',
    'indent_with_tabs': False,
    'preserve_newlines': True,
    'max_preserve_newlines': 2,
    'space_in_empty_paren': True,
    'keep_array_indentation': False,
    'break_chained_methods': False,
    'brace_style': 'collapse,preserve-inline',
    'space_before_conditional': True,
    'unescape_strings': False,
    'jslint_happy': False,
    'end_with_newline': False,
    'wrap_line_length': 0,
    'indent_empty_lines': False,
    'comma_first': False,
    'e4x': False,
}

NO_MODULES_PLACEHOLDER = '// No modules found\n'
