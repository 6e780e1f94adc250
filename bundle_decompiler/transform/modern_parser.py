"""tree-sitter parsing for bodies that use syntax newer than ES2017.

esprima stops at ES2017, so optional chaining, nullish coalescing, class
fields and the like are handed to the tree-sitter JavaScript grammar
instead. The concrete syntax tree is lowered into the same ESTree-shaped
dicts ``js_parser`` produces (``type``, character ``range`` and child
nodes), so the renamer and the dependency analyzer walk either tree the
same way.

Only the node kinds those walkers inspect get an ESTree shape. Everything
else becomes a generic ``TS:<kind>`` node whose named children are kept in
``children``. Private names, and member or label names met outside the
slots ESTree gives them, become ``Name`` nodes, which no walker treats as
a binding.
"""

import logging
import re
from bisect import bisect_left
from typing import Any, Callable

import tree_sitter_javascript
from tree_sitter import Language, Parser

logger = logging.getLogger(__name__)

Node = dict[str, Any]

JS_LANGUAGE = Language(tree_sitter_javascript.language())

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}
_ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


class SyntaxTreeError(Exception):
    """The grammar reported errors while parsing a source."""


def parse_modern(source: str) -> Node:
    """Parse a complete script into an ESTree-shaped dict tree.

    Raises:
        SyntaxTreeError: When the tree contains error or missing nodes.
    """
    data = source.encode('utf-8')
    # Parser objects are not shared across threads
    tree = Parser(JS_LANGUAGE).parse(data)
    root = tree.root_node
    if root.has_error:
        offset = _first_error(root)
        logger.debug("tree-sitter reported a syntax error near byte %d", offset)
        raise SyntaxTreeError(f"syntax error near offset {offset}")
    return _Lowering(source, data).lower(root)


def _first_error(root) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'ERROR' or node.is_missing:
            return node.start_byte
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return root.start_byte


class _Lowering:
    """Converts one tree-sitter tree into ESTree-shaped dicts."""

    def __init__(self, source: str, data: bytes):
        self.data = data
        self.offsets: list[int] | None = None
        if len(data) != len(source):
            offsets, total = [], 0
            for char in source:
                offsets.append(total)
                total += len(char.encode('utf-8'))
            self.offsets = offsets
        self.builders: dict[str, Callable] = {
            'program': self._program,
            'statement_block': self._block,
            'class_static_block': self._static_block,
            'expression_statement': self._expression_statement,
            'parenthesized_expression': self._parenthesized,
            'identifier': self._identifier,
            'undefined': self._identifier,
            'property_identifier': self._name,
            'private_property_identifier': self._name,
            'statement_identifier': self._name,
            'this': self._leaf('ThisExpression'),
            'super': self._leaf('Super'),
            'meta_property': self._leaf('MetaProperty'),
            'string': self._string,
            'number': self._number,
            'true': self._constant(True),
            'false': self._constant(False),
            'null': self._constant(None),
            'regex': self._constant(None),
            'member_expression': self._member,
            'subscript_expression': self._subscript,
            'call_expression': self._call,
            'object': self._object,
            'pair': self._pair,
            'shorthand_property_identifier': self._shorthand,
            'shorthand_property_identifier_pattern': self._shorthand,
            'method_definition': self._method,
            'field_definition': self._class_field,
            'spread_element': self._wrap('SpreadElement', 'argument'),
            'rest_pattern': self._wrap('RestElement', 'argument'),
            'function_declaration': self._function('FunctionDeclaration'),
            'generator_function_declaration': self._function('FunctionDeclaration'),
            'function_expression': self._function('FunctionExpression'),
            'function': self._function('FunctionExpression'),
            'generator_function': self._function('FunctionExpression'),
            'arrow_function': self._arrow,
            'object_pattern': self._object_pattern,
            'pair_pattern': self._pair,
            'object_assignment_pattern': self._object_assignment,
            'array_pattern': self._array_pattern,
            'assignment_pattern': self._assignment_pattern,
            'variable_declaration': self._declaration,
            'lexical_declaration': self._declaration,
            'variable_declarator': self._declarator,
            'switch_statement': self._switch,
            'for_statement': self._for,
            'for_in_statement': self._for_in,
            'catch_clause': self._catch,
            'class_declaration': self._class('ClassDeclaration'),
            'class': self._class('ClassExpression'),
            'labeled_statement': self._labeled,
            'break_statement': self._jump('BreakStatement'),
            'continue_statement': self._jump('ContinueStatement'),
        }

    def lower(self, node) -> Node | None:
        if node is None or node.type == 'comment':
            return None
        builder = self.builders.get(node.type)
        if builder is None:
            return self._generic(node)
        return builder(node)

    # ── Helpers ─────────────────────────────────────────────────────────

    def _char(self, byte_offset: int) -> int:
        if self.offsets is None:
            return byte_offset
        return bisect_left(self.offsets, byte_offset)

    def _range(self, node) -> list[int]:
        return [self._char(node.start_byte), self._char(node.end_byte)]

    def _text(self, node) -> str:
        return self.data[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    def _node(self, node_type: str, ts_node, **fields) -> Node:
        return {'type': node_type, 'range': self._range(ts_node), **fields}

    def _field(self, node, name: str) -> Node | None:
        return self.lower(node.child_by_field_name(name))

    def _lowered_children(self, node, exclude=()) -> list[Node]:
        lowered = []
        for child in node.named_children:
            if child.type == 'comment' or any(child == other for other in exclude if other is not None):
                continue
            converted = self.lower(child)
            if converted is not None:
                lowered.append(converted)
        return lowered

    def _generic(self, node) -> Node:
        return self._node(f"TS:{node.type}", node, children=self._lowered_children(node))

    def _key(self, node) -> tuple[Node | None, bool]:
        """Lower a property key; returns (key, computed)."""
        if node is None:
            return None, False
        if node.type == 'computed_property_name':
            inner = [c for c in node.named_children if c.type != 'comment']
            return (self.lower(inner[0]) if inner else None), True
        if node.type in ('property_identifier', 'identifier', 'shorthand_property_identifier',
                         'shorthand_property_identifier_pattern'):
            return self._node('Identifier', node, name=self._text(node)), False
        return self.lower(node), False

    # ── Leaves ──────────────────────────────────────────────────────────

    def _identifier(self, node) -> Node:
        return self._node('Identifier', node, name=self._text(node))

    def _name(self, node) -> Node:
        return self._node('Name', node, name=self._text(node))

    def _leaf(self, kind: str) -> Callable:
        return lambda node: self._node(kind, node)

    def _constant(self, value) -> Callable:
        return lambda node: self._node('Literal', node, value=value, raw=self._text(node))

    def _string(self, node) -> Node:
        raw = self._text(node)
        inner = _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), raw[1:-1])
        return self._node('Literal', node, value=inner, raw=raw)

    def _number(self, node) -> Node:
        raw = self._text(node)
        digits = raw.replace('_', '').rstrip('n')
        try:
            value: int | float | str = int(digits, 0)
        except ValueError:
            try:
                value = float(digits)
            except ValueError:
                value = raw
        return self._node('Literal', node, value=value, raw=raw)

    # ── Statements and blocks ───────────────────────────────────────────

    def _program(self, node) -> Node:
        return self._node('Program', node, sourceType='script', body=self._lowered_children(node))

    def _block(self, node) -> Node:
        return self._node('BlockStatement', node, body=self._lowered_children(node))

    def _static_block(self, node) -> Node:
        body = node.child_by_field_name('body')
        statements = self._lowered_children(body) if body is not None else []
        return self._node('StaticBlock', node, body=statements)

    def _expression_statement(self, node) -> Node:
        inner = self._lowered_children(node)
        expression = inner[0] if len(inner) == 1 else self._generic(node)
        return self._node('ExpressionStatement', node, expression=expression)

    def _parenthesized(self, node) -> Node:
        inner = self._lowered_children(node)
        return inner[0] if len(inner) == 1 else self._generic(node)

    def _declaration(self, node) -> Node:
        kind = 'var'
        if node.type == 'lexical_declaration':
            kind_node = node.child_by_field_name('kind')
            kind = self._text(kind_node) if kind_node is not None else 'let'
        declarators = [self.lower(c) for c in node.named_children if c.type == 'variable_declarator']
        return self._node('VariableDeclaration', node, kind=kind, declarations=declarators)

    def _declarator(self, node) -> Node:
        return self._node('VariableDeclarator', node,
                          id=self._field(node, 'name'), init=self._field(node, 'value'))

    def _switch(self, node) -> Node:
        cases = []
        body = node.child_by_field_name('body')
        for case in (body.named_children if body is not None else []):
            if case.type not in ('switch_case', 'switch_default'):
                continue
            test = case.child_by_field_name('value')
            cases.append(self._node('SwitchCase', case, test=self.lower(test),
                                    consequent=self._lowered_children(case, exclude=(test,))))
        return self._node('SwitchStatement', node, discriminant=self._field(node, 'value'), cases=cases)

    def _for(self, node) -> Node:
        init = self._field(node, 'initializer')
        if init is not None and init['type'] == 'ExpressionStatement':
            init = init['expression']
        test = self._field(node, 'condition')
        if test is not None and test['type'] == 'ExpressionStatement':
            test = test['expression']
        return self._node('ForStatement', node, init=init, test=test,
                          update=self._field(node, 'increment'), body=self._field(node, 'body'))

    def _for_in(self, node) -> Node:
        operator = node.child_by_field_name('operator')
        kind = 'ForOfStatement' if operator is not None and operator.type == 'of' else 'ForInStatement'
        left_node = node.child_by_field_name('left')
        left = self.lower(left_node)
        kind_node = node.child_by_field_name('kind')
        if kind_node is not None and left_node is not None:
            declarator = self._node('VariableDeclarator', left_node, id=left, init=None)
            left = self._node('VariableDeclaration', left_node, kind=self._text(kind_node),
                              declarations=[declarator])
        return self._node(kind, node, left=left, right=self._field(node, 'right'),
                          body=self._field(node, 'body'))

    def _catch(self, node) -> Node:
        return self._node('CatchClause', node,
                          param=self._field(node, 'parameter'), body=self._field(node, 'body'))

    def _labeled(self, node) -> Node:
        label = node.child_by_field_name('label')
        return self._node('LabeledStatement', node, label=self._identifier(label) if label else None,
                          body=self._field(node, 'body'))

    def _jump(self, kind: str) -> Callable:
        def build(node) -> Node:
            label = node.child_by_field_name('label')
            return self._node(kind, node, label=self._identifier(label) if label else None)
        return build

    # ── Expressions ─────────────────────────────────────────────────────

    def _member(self, node) -> Node:
        prop = node.child_by_field_name('property')
        lowered = None
        if prop is not None:
            kind = 'Identifier' if prop.type == 'property_identifier' else 'Name'
            lowered = self._node(kind, prop, name=self._text(prop))
        return self._node('MemberExpression', node, computed=False,
                          object=self._field(node, 'object'), property=lowered)

    def _subscript(self, node) -> Node:
        return self._node('MemberExpression', node, computed=True,
                          object=self._field(node, 'object'), property=self._field(node, 'index'))

    def _call(self, node) -> Node:
        function = node.child_by_field_name('function')
        if function is not None and function.type == 'import':
            callee = self._node('Import', function)
        else:
            callee = self.lower(function)
        args = node.child_by_field_name('arguments')
        arguments = self._lowered_children(args) if args is not None and args.type == 'arguments' else []
        if args is not None and args.type != 'arguments':
            # Tagged template
            arguments = [self.lower(args)]
        return self._node('CallExpression', node, callee=callee, arguments=arguments)

    def _wrap(self, kind: str, key: str) -> Callable:
        def build(node) -> Node:
            inner = self._lowered_children(node)
            return self._node(kind, node, **{key: inner[0] if inner else None})
        return build

    # ── Objects and classes ─────────────────────────────────────────────

    def _object(self, node) -> Node:
        return self._node('ObjectExpression', node, properties=self._lowered_children(node))

    def _pair(self, node) -> Node:
        key, computed = self._key(node.child_by_field_name('key'))
        return self._node('Property', node, kind='init', key=key, computed=computed,
                          shorthand=False, method=False, value=self._field(node, 'value'))

    def _shorthand(self, node) -> Node:
        key = self._identifier(node)
        value = self._identifier(node)
        return self._node('Property', node, kind='init', key=key, computed=False,
                          shorthand=True, method=False, value=value)

    def _method(self, node) -> Node:
        key, computed = self._key(node.child_by_field_name('name'))
        params = node.child_by_field_name('parameters')
        body = node.child_by_field_name('body')
        value = {
            'type': 'FunctionExpression',
            'range': [self._char((params or node).start_byte), self._char(node.end_byte)],
            'id': None,
            'params': self._lowered_children(params) if params is not None else [],
            'body': self.lower(body),
        }
        return self._node('MethodDefinition', node, key=key, computed=computed, value=value)

    def _class_field(self, node) -> Node:
        key, computed = self._key(node.child_by_field_name('property'))
        return self._node('PropertyDefinition', node, key=key, computed=computed,
                          value=self._field(node, 'value'))

    def _class(self, kind: str) -> Callable:
        def build(node) -> Node:
            heritage = [c for c in node.named_children if c.type == 'class_heritage']
            super_class = None
            if heritage:
                inner = self._lowered_children(heritage[0])
                super_class = inner[0] if inner else None
            body = node.child_by_field_name('body')
            members = self._lowered_children(body) if body is not None else []
            class_body = self._node('ClassBody', body or node, body=members)
            return self._node(kind, node, id=self._field(node, 'name'),
                              superClass=super_class, body=class_body)
        return build

    # ── Functions and patterns ──────────────────────────────────────────

    def _function(self, kind: str) -> Callable:
        def build(node) -> Node:
            params = node.child_by_field_name('parameters')
            return self._node(kind, node, id=self._field(node, 'name'),
                              params=self._lowered_children(params) if params is not None else [],
                              body=self._field(node, 'body'))
        return build

    def _arrow(self, node) -> Node:
        single = node.child_by_field_name('parameter')
        if single is not None:
            params = [self.lower(single)]
        else:
            wrapped = node.child_by_field_name('parameters')
            params = self._lowered_children(wrapped) if wrapped is not None else []
        body = self._field(node, 'body')
        return self._node('ArrowFunctionExpression', node, id=None, params=params, body=body,
                          expression=bool(body) and body['type'] != 'BlockStatement')

    def _object_pattern(self, node) -> Node:
        return self._node('ObjectPattern', node, properties=self._lowered_children(node))

    def _object_assignment(self, node) -> Node:
        left_node = node.child_by_field_name('left')
        right = self._field(node, 'right')
        if left_node is not None and left_node.type == 'shorthand_property_identifier_pattern':
            key = self._identifier(left_node)
            value = self._node('AssignmentPattern', node, left=self._identifier(left_node), right=right)
            return self._node('Property', node, kind='init', key=key, computed=False,
                              shorthand=True, method=False, value=value)
        return self._node('AssignmentPattern', node, left=self.lower(left_node), right=right)

    def _array_pattern(self, node) -> Node:
        return self._node('ArrayPattern', node, elements=self._lowered_children(node))

    def _assignment_pattern(self, node) -> Node:
        return self._node('AssignmentPattern', node,
                          left=self._field(node, 'left'), right=self._field(node, 'right'))
