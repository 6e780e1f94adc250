"""Tolerant JavaScript parsing for extracted module bodies.

Module bodies are fragments: they may ``return`` or ``await`` at top level
because they were cut out of a factory function. ``parse_body`` wraps the
fragment back into a function of the right shape before handing it to
esprima, and reports where the body and each parameter sit inside the
wrapped source so callers can map tree ranges back onto the fragment.
Bodies esprima rejects are retried with the tree-sitter grammar in
``modern_parser``, which covers syntax newer than ES2017.

Trees are converted to plain dicts (``type``, ``range`` and child nodes),
the same shape esprima's ``toDict`` produces.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

import esprima

from bundle_decompiler.domain.enums import BodyKind
from bundle_decompiler.domain.models import Span
from bundle_decompiler.transform.modern_parser import SyntaxTreeError, parse_modern

logger = logging.getLogger(__name__)

Node = dict[str, Any]

_NON_CHILD_KEYS = frozenset({'type', 'range', 'loc'})

FUNCTION_TYPES = frozenset({
    'FunctionDeclaration',
    'FunctionExpression',
    'ArrowFunctionExpression',
})


class JSParseError(Exception):
    """A module body could not be parsed under any wrapper."""


@dataclass
class ParsedBody:
    """A parsed module body and its coordinates inside the wrapped source."""

    tree: Node
    source: str
    body_span: Span
    param_spans: list[Span] = field(default_factory=list)


def _wrappers(body_kind: BodyKind) -> list[tuple[str, str, str]]:
    """(prefix head, params/body joint, suffix) per wrapper, most permissive first."""
    if body_kind == BodyKind.EXPRESSION:
        return [
            ('(async (', ') => (\n', '\n))'),
            ('((', ') => (\n', '\n))'),
        ]
    return [
        ('(async function (', ') {\n', '\n})'),
        ('(function (', ') {\n', '\n})'),
    ]


def parse_body(body: str, params=(), body_kind: BodyKind = BodyKind.BLOCK) -> ParsedBody:
    """Parse a module body as the factory function it was cut from.

    Args:
        body: Verbatim body text.
        params: Factory parameter texts, in declaration order.
        body_kind: Whether the body is a block or a concise arrow expression.

    Raises:
        JSParseError: When neither esprima nor the tree-sitter grammar
            yields a tree under any wrapper.
    """
    errors = []
    for head, joint, tail in _wrappers(body_kind):
        source, body_span, param_spans = _assemble(body, list(params), head, joint, tail)
        try:
            tree = parse_source(source)
        except JSParseError as e:
            errors.append(str(e))
            continue
        return ParsedBody(tree=tree, source=source, body_span=body_span, param_spans=param_spans)

    # Syntax past ES2017 goes through the tree-sitter grammar
    head, joint, tail = _wrappers(body_kind)[0]
    source, body_span, param_spans = _assemble(body, list(params), head, joint, tail)
    try:
        tree = parse_modern(source)
    except SyntaxTreeError as e:
        errors.append(str(e))
        raise JSParseError('; '.join(errors)) from e
    logger.debug("Parsed body with the tree-sitter grammar after: %s", errors[-1] if errors else '')
    return ParsedBody(tree=tree, source=source, body_span=body_span, param_spans=param_spans)


def parse_source(source: str) -> Node:
    """Parse a complete script with ranges in tolerant mode."""
    try:
        program = esprima.parseScript(source, {'range': True, 'tolerant': True})
        return to_plain(program)
    except Exception as e:
        raise JSParseError(str(e) or type(e).__name__) from e


def _assemble(body: str, params: list[str], head: str, joint: str, tail: str) -> tuple[str, Span, list[Span]]:
    parts = [head]
    offset = len(head)
    param_spans: list[Span] = []
    for index, param in enumerate(params):
        if index:
            parts.append(', ')
            offset += 2
        param_spans.append((offset, offset + len(param)))
        parts.append(param)
        offset += len(param)
    parts.append(joint)
    offset += len(joint)
    body_span = (offset, offset + len(body))
    parts.append(body)
    parts.append(tail)
    return ''.join(parts), body_span, param_spans


# ── Tree Helpers ─────────────────────────────────────────────────────────

def to_plain(value: Any) -> Any:
    """Convert an esprima node tree into nested dicts and lists."""
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    attrs = getattr(value, '__dict__', None)
    if attrs is None:
        return value
    return {k: to_plain(v) for k, v in attrs.items() if not k.startswith('_')}


def is_node(value: Any) -> bool:
    return isinstance(value, dict) and 'type' in value


def iter_children(node: Node) -> Iterator[tuple[str, Node]]:
    """Yield ``(key, child)`` pairs of a node in source order."""
    children = []
    for key, value in node.items():
        if key in _NON_CHILD_KEYS:
            continue
        if is_node(value):
            children.append((key, value))
        elif isinstance(value, list):
            children.extend((key, item) for item in value if is_node(item))
    children.sort(key=lambda kv: node_start(kv[1]))
    return iter(children)


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk over every node, in source order, without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = [child for _, child in iter_children(current)]
        stack.extend(reversed(children))


def node_start(node: Node) -> int:
    rng = node.get('range')
    return rng[0] if rng else 0


def node_range(node: Node) -> Span | None:
    rng = node.get('range')
    if not rng:
        return None
    return rng[0], rng[1]


def property_key_name(node: Node | None) -> str | None:
    """Name of a Property/MethodDefinition key, when it is statically known."""
    if not node or node.get('type') not in ('Property', 'MethodDefinition'):
        return None
    key = node.get('key') or {}
    if key.get('type') == 'Identifier' and not node.get('computed'):
        return key.get('name')
    if key.get('type') == 'Literal' and isinstance(key.get('value'), str):
        return key.get('value')
    return None


def pattern_names(pattern: Node | None) -> list[str]:
    """Names bound by a declaration pattern (identifier, object/array destructuring)."""
    names: list[str] = []
    stack = [pattern]
    while stack:
        node = stack.pop()
        if not is_node(node):
            continue
        kind = node['type']
        if kind == 'Identifier':
            names.append(node['name'])
        elif kind == 'ObjectPattern':
            for prop in node.get('properties') or []:
                if not is_node(prop):
                    continue
                if prop.get('type') == 'RestElement':
                    stack.append(prop.get('argument'))
                else:
                    stack.append(prop.get('value'))
        elif kind == 'ArrayPattern':
            stack.extend(node.get('elements') or [])
        elif kind == 'AssignmentPattern':
            stack.append(node.get('left'))
        elif kind == 'RestElement':
            stack.append(node.get('argument'))
    return names
