"""Tests for the tree-sitter parse path and its ESTree-shaped output."""

import pytest

from bundle_decompiler.domain.enums import BodyKind
from bundle_decompiler.transform.js_parser import JSParseError, parse_body, walk
from bundle_decompiler.transform.modern_parser import SyntaxTreeError, parse_modern


def _types(tree):
    return [node['type'] for node in walk(tree)]


class TestParseModern:

    def test_program_shape(self):
        tree = parse_modern('a?.b;')
        assert tree['type'] == 'Program'
        statement = tree['body'][0]
        assert statement['type'] == 'ExpressionStatement'
        member = statement['expression']
        assert member['type'] == 'MemberExpression'
        assert member['object'] == {'type': 'Identifier', 'range': [0, 1], 'name': 'a'}
        assert member['property']['name'] == 'b'
        assert not member['computed']

    def test_dynamic_import_callee(self):
        tree = parse_modern('import("./lazy");')
        call = tree['body'][0]['expression']
        assert call['type'] == 'CallExpression'
        assert call['callee']['type'] == 'Import'
        assert call['arguments'][0]['value'] == './lazy'

    def test_numeric_literals(self):
        tree = parse_modern('f(3040, 0x10, 1_000);')
        args = tree['body'][0]['expression']['arguments']
        assert [a['value'] for a in args] == [3040, 16, 1000]

    def test_ranges_are_character_offsets(self):
        source = 'x = "éé"; y;'
        tree = parse_modern(source)
        names = [n for n in walk(tree) if n['type'] == 'Identifier']
        y = names[-1]
        assert source[y['range'][0]:y['range'][1]] == 'y'

    def test_function_and_patterns(self):
        tree = parse_modern('function f({a, b: [c] = []}, ...d) { let e = a ?? c; }')
        fn = tree['body'][0]
        assert fn['type'] == 'FunctionDeclaration'
        assert fn['id']['name'] == 'f'
        assert [p['type'] for p in fn['params']] == ['ObjectPattern', 'RestElement']
        declaration = fn['body']['body'][0]
        assert declaration['type'] == 'VariableDeclaration'
        assert declaration['kind'] == 'let'

    def test_class_fields_and_methods(self):
        types = _types(parse_modern('class A extends B { x = 1; #y; m() { return this.#y; } }'))
        assert 'ClassDeclaration' in types
        assert 'PropertyDefinition' in types
        assert 'MethodDefinition' in types

    def test_syntax_error_raises(self):
        with pytest.raises(SyntaxTreeError):
            parse_modern('t.x = ;')


class TestParseBodyFallback:

    def test_modern_block_body_parses(self):
        parsed = parse_body('t.a = e?.b ?? 1;', ['e', 't'])
        assert parsed.source[parsed.body_span[0]:parsed.body_span[1]] == 't.a = e?.b ?? 1;'
        assert [parsed.source[s:e] for s, e in parsed.param_spans] == ['e', 't']
        assert 'MemberExpression' in _types(parsed.tree)

    def test_modern_expression_body_parses(self):
        parsed = parse_body('{ a: e?.b }', ['e'], BodyKind.EXPRESSION)
        assert 'ArrowFunctionExpression' in _types(parsed.tree)

    def test_broken_body_still_fails(self):
        with pytest.raises(JSParseError):
            parse_body('t.x = ;', ['t'])
