"""Heuristic renaming of minified parameter names.

Every function, arrow and method in a module (the factory itself included)
gets its single-letter parameters retargeted through a lookup table chosen
by the property key the function is attached to:

    click / submit  -> RenameContext.EVENT_HANDLER
    callback        -> RenameContext.CALLBACK
    anything else   -> RenameContext.COMMON

Edits are span-based. Only the parameter declaration and the references
bound to it are rewritten; every other character of the body is kept as is.
A rename is dropped when the new name would collide with a name already
used inside the function.
"""

import logging
from dataclasses import dataclass

from bundle_decompiler.domain.constants import CALLBACK_KEYS, EVENT_HANDLER_KEYS, RENAME_TABLES
from bundle_decompiler.domain.enums import BodyKind, RenameContext, WarningKind
from bundle_decompiler.domain.models import StageResult
from bundle_decompiler.transform.js_parser import (
    FUNCTION_TYPES,
    JSParseError,
    Node,
    is_node,
    iter_children,
    node_range,
    parse_body,
    pattern_names,
    property_key_name,
)
from bundle_decompiler.transform.overlay import SpanOverlay

logger = logging.getLogger(__name__)

Env = dict[str, str | None]

_BLOCK_TYPES = frozenset({'BlockStatement', 'Program', 'StaticBlock'})
_LOOP_TYPES = frozenset({'ForStatement', 'ForInStatement', 'ForOfStatement'})
_CLASS_TYPES = frozenset({'ClassDeclaration', 'ClassExpression'})
_KEYED_TYPES = frozenset({'Property', 'MethodDefinition', 'PropertyDefinition'})
_LABEL_TYPES = frozenset({'LabeledStatement', 'BreakStatement', 'ContinueStatement'})


@dataclass
class RenameOutcome:
    body: str
    params: list[str]
    renamed: int = 0


def select_context(parent: Node | None) -> RenameContext:
    """Pick the rename table from the property key a function is attached to."""
    key = property_key_name(parent)
    if key in EVENT_HANDLER_KEYS:
        return RenameContext.EVENT_HANDLER
    if key in CALLBACK_KEYS:
        return RenameContext.CALLBACK
    return RenameContext.COMMON


def is_reference_position(parent: Node | None, key: str | None) -> bool:
    """Whether an Identifier at parent[key] names a variable (not a property or label)."""
    if parent is None:
        return True
    kind = parent.get('type')
    if kind == 'MemberExpression' and key == 'property' and not parent.get('computed'):
        return False
    if kind in _KEYED_TYPES and key == 'key' and not parent.get('computed'):
        return False
    if kind in _LABEL_TYPES and key == 'label':
        return False
    if kind == 'MetaProperty':
        return False
    return True


class IdentifierRenamer:
    """Renames bundler-convention parameters in module bodies."""

    def __init__(self, tables: dict[RenameContext, dict[str, str]] | None = None):
        self.tables = tables or RENAME_TABLES

    def rename(
        self,
        body: str,
        params=(),
        body_kind: BodyKind = BodyKind.BLOCK,
    ) -> StageResult[RenameOutcome]:
        """Rename parameters of the factory and of every nested function.

        Args:
            body: Verbatim module body.
            params: Factory parameter texts.
            body_kind: Block or concise-expression body.

        Returns:
            StageResult with the renamed body and parameters. On a parse
            failure the body and parameters come back unchanged, with a
            warning, and the result is marked degraded.
        """
        params = list(params)
        try:
            parsed = parse_body(body, params, body_kind)
        except JSParseError as e:
            message = f"{WarningKind.MODULE_PARSE_DEGRADED.value}: rename skipped, body did not parse ({e})"
            logger.warning(message)
            return StageResult(RenameOutcome(body, params), [message], degraded=True)

        overlay = SpanOverlay(parsed.source)
        try:
            _RenamePass(overlay, self.tables).run(parsed.tree)
        except (ValueError, RecursionError) as e:
            message = f"{WarningKind.MODULE_PARSE_DEGRADED.value}: rename abandoned ({e})"
            logger.warning(message)
            return StageResult(RenameOutcome(body, params), [message], degraded=True)

        outcome = RenameOutcome(
            body=overlay.render(parsed.body_span),
            params=[overlay.render(span) for span in parsed.param_spans],
            renamed=len(overlay),
        )
        return StageResult(outcome)


class _RenamePass:
    """One scope-aware walk over a parsed body, recording edits on an overlay."""

    def __init__(self, overlay: SpanOverlay, tables: dict[RenameContext, dict[str, str]]):
        self.overlay = overlay
        self.tables = tables
        self.shorthand_starts: set[int] = set()
        self.names_by_function: dict[int, set[str]] = {}

    def run(self, tree: Node) -> None:
        self._collect_names(tree, None, None)
        self._visit(tree, None, None, {})

    # ── Name Collection ──────────────────────────────────────────────────

    def _collect_names(self, node: Node, parent: Node | None, key: str | None) -> set[str]:
        """Variable names used under ``node``; stored per function for collision checks."""
        names: set[str] = set()
        if node['type'] == 'Identifier' and is_reference_position(parent, key):
            names.add(node['name'])
        for child_key, child in iter_children(node):
            names |= self._collect_names(child, node, child_key)
        if node['type'] in FUNCTION_TYPES:
            self.names_by_function[id(node)] = names
        return names

    # ── Visiting ─────────────────────────────────────────────────────────

    def _visit(self, node: Node, parent: Node | None, key: str | None, env: Env) -> None:
        kind = node['type']

        if kind in FUNCTION_TYPES:
            self._visit_function(node, parent, env)
            return

        if kind == 'Identifier':
            self._visit_identifier(node, parent, key, env)
            return

        if kind in _BLOCK_TYPES:
            env = _shadow(env, _lexical_names(node.get('body') or []))
        elif kind == 'SwitchStatement':
            statements = []
            for case in node.get('cases') or []:
                statements.extend(case.get('consequent') or [])
            env = _shadow(env, _lexical_names(statements))
        elif kind in _LOOP_TYPES:
            head = node.get('init') if kind == 'ForStatement' else node.get('left')
            if is_node(head) and head['type'] == 'VariableDeclaration' and head.get('kind') != 'var':
                env = _shadow(env, _declared_names(head))
        elif kind == 'CatchClause':
            env = _shadow(env, pattern_names(node.get('param')))
        elif kind == 'ClassExpression' and is_node(node.get('id')):
            env = _shadow(env, [node['id']['name']])
        elif kind == 'Property' and node.get('shorthand'):
            start = (node_range(node.get('key') or {}) or (None,))[0]
            if start is not None:
                self.shorthand_starts.add(start)

        for child_key, child in iter_children(node):
            self._visit(child, node, child_key, env)

    def _visit_identifier(self, node: Node, parent: Node | None, key: str | None, env: Env) -> None:
        if not is_reference_position(parent, key):
            return
        name = node['name']
        replacement = env.get(name)
        span = node_range(node)
        if not replacement or span is None:
            return
        if span[0] in self.shorthand_starts:
            replacement = f"{name}: {replacement}"
        self.overlay.overwrite(span[0], span[1], replacement)

    def _visit_function(self, node: Node, parent: Node | None, env: Env) -> None:
        table = self.tables.get(select_context(parent), {})
        params = node.get('params') or []
        body = node.get('body')

        declared: set[str] = set()
        for param in params:
            declared.update(pattern_names(param))
        if is_node(body) and body['type'] == 'BlockStatement':
            declared |= _hoisted_names(body)

        inner = _shadow(env, declared)
        own_id = node.get('id')
        if node['type'] == 'FunctionExpression' and is_node(own_id):
            inner[own_id['name']] = None

        used = self.names_by_function.get(id(node), set())
        claimed: set[str] = set()
        for param in params:
            if param.get('type') != 'Identifier':
                continue
            name = param['name']
            new_name = table.get(name)
            if len(name) != 1 or not new_name:
                continue
            if new_name in claimed or new_name in used:
                continue
            if _captures_outer(new_name, env, used, declared):
                continue
            inner[name] = new_name
            claimed.add(new_name)

        if node['type'] == 'FunctionDeclaration' and is_node(own_id):
            self._visit_identifier(own_id, node, 'id', env)

        for param in params:
            self._visit(param, node, 'params', inner)
        if is_node(body):
            self._visit(body, node, 'body', inner)


# ── Scope Helpers ────────────────────────────────────────────────────────

def _shadow(env: Env, names) -> Env:
    names = list(names)
    if not names:
        return env
    inner = dict(env)
    for name in names:
        inner[name] = None
    return inner


def _captures_outer(new_name: str, env: Env, used: set[str], declared: set[str]) -> bool:
    """True when an outer binding already renamed to ``new_name`` is referenced inside."""
    for name, replacement in env.items():
        if replacement == new_name and name in used and name not in declared:
            return True
    return False


def _declared_names(declaration: Node) -> list[str]:
    names: list[str] = []
    for declarator in declaration.get('declarations') or []:
        names.extend(pattern_names(declarator.get('id')))
    return names


def _lexical_names(statements: list) -> list[str]:
    """Names declared with let/const/class directly in a statement list."""
    names: list[str] = []
    for statement in statements:
        if not is_node(statement):
            continue
        if statement['type'] == 'VariableDeclaration' and statement.get('kind') in ('let', 'const'):
            names.extend(_declared_names(statement))
        elif statement['type'] == 'ClassDeclaration' and is_node(statement.get('id')):
            names.append(statement['id']['name'])
    return names


def _hoisted_names(body: Node) -> set[str]:
    """var and function declarations of a function body, nested functions excluded."""
    names: set[str] = set()
    stack = [body]
    while stack:
        node = stack.pop()
        kind = node['type']
        if kind == 'FunctionDeclaration':
            if is_node(node.get('id')):
                names.add(node['id']['name'])
            continue
        if kind in FUNCTION_TYPES or kind in _CLASS_TYPES:
            continue
        if kind == 'VariableDeclaration' and node.get('kind') == 'var':
            names.update(_declared_names(node))
        stack.extend(child for _, child in iter_children(node))
    return names


def rename(body: str, params=(), body_kind: BodyKind = BodyKind.BLOCK) -> StageResult[RenameOutcome]:
    """Functional form of IdentifierRenamer.rename."""
    return IdentifierRenamer().rename(body, params, body_kind)
