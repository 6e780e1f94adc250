"""Tests for IdentifierRenamer."""

import pytest

from bundle_decompiler.domain.enums import BodyKind, RenameContext
from bundle_decompiler.transform.renamer import IdentifierRenamer, rename, select_context


@pytest.fixture
def renamer():
    return IdentifierRenamer()


class TestFactoryParameters:

    def test_declaration_and_references_renamed(self, renamer):
        result = renamer.rename('t.x=1', ['e', 't'])
        assert result.value.params == ['module', 'exports']
        assert result.value.body == 'exports.x=1'
        assert result.warnings == []
        assert not result.degraded

    def test_body_without_table_letters_unchanged(self, renamer):
        body = 'var foo = bar(baz);\nreturn foo;'
        result = renamer.rename(body, ['e'])
        assert result.value.body == body

    def test_free_identifiers_untouched(self, renamer):
        result = renamer.rename('var x = y.e; t.e = e;', ['t'])
        assert result.value.body == 'var x = y.e; exports.e = e;'

    def test_multi_letter_params_kept(self, renamer):
        result = renamer.rename('foo.x = 1;', ['foo'])
        assert result.value.params == ['foo']
        assert result.value.body == 'foo.x = 1;'

    def test_require_calls_renamed(self, renamer):
        result = renamer.rename('var r = n(3040);', ['e', 't', 'n'])
        assert result.value.body == 'var r = require(3040);'

    def test_f_becomes_fn_not_reserved_word(self, renamer):
        result = renamer.rename('return f(1);', ['f'])
        assert result.value.params == ['fn']
        assert result.value.body == 'return fn(1);'

    def test_expression_body(self, renamer):
        result = renamer.rename('{ a: n(100) }', ['e', 't', 'n'], BodyKind.EXPRESSION)
        assert result.value.body == '{ a: require(100) }'


class TestNonReferencePositions:

    def test_property_keys_kept(self, renamer):
        result = renamer.rename('return { t: t };', ['t'])
        assert result.value.body == 'return { t: exports };'

    def test_shorthand_property_expanded(self, renamer):
        result = renamer.rename('return { t };', ['t'])
        assert result.value.body == 'return { t: exports };'

    def test_member_properties_kept(self, renamer):
        result = renamer.rename('x.t = t.t;', ['t'])
        assert result.value.body == 'x.t = exports.t;'

    def test_labels_kept(self, renamer):
        body = 'a: for (;;) { break a; }'
        result = renamer.rename(body, ['a'])
        assert result.value.body == body
        assert result.value.params == ['args']


class TestScoping:

    def test_block_scoped_shadow_kept(self, renamer):
        result = renamer.rename('{ let t = 2; x(t); } return t;', ['t'])
        assert result.value.body == '{ let t = 2; x(t); } return exports;'

    def test_nested_function_params_renamed(self, renamer):
        result = renamer.rename('t.render = function (o) { return o; };', ['e', 't'])
        assert result.value.body == 'exports.render = function (object) { return object; };'

    def test_collision_skips_rename(self, renamer):
        body = 'var module = 1; return e + module;'
        result = renamer.rename(body, ['e'])
        assert result.value.params == ['e']
        assert result.value.body == body

    def test_catch_param_shadows(self, renamer):
        result = renamer.rename('try { t(); } catch (t) { log(t); }', ['t'])
        assert result.value.body == 'try { exports(); } catch (t) { log(t); }'


class TestContexts:

    def test_event_handler_table(self, renamer):
        body = 'return { click: function (e) { e.preventDefault(); } };'
        result = renamer.rename(body, [])
        assert result.value.body == 'return { click: function (event) { event.preventDefault(); } };'

    def test_callback_table(self, renamer):
        body = 'return { callback: function (t, a) { return t !== a; } };'
        result = renamer.rename(body, [])
        assert 'function (value, newValue) { return value !== newValue; }' in result.value.body

    def test_select_context(self):
        def prop(name):
            return {'type': 'Property', 'computed': False, 'key': {'type': 'Identifier', 'name': name}}

        assert select_context(prop('click')) == RenameContext.EVENT_HANDLER
        assert select_context(prop('submit')) == RenameContext.EVENT_HANDLER
        assert select_context(prop('callback')) == RenameContext.CALLBACK
        assert select_context(prop('render')) == RenameContext.COMMON
        assert select_context(None) == RenameContext.COMMON


class TestModernSyntax:

    def test_optional_chaining_and_nullish_coalescing(self, renamer):
        result = renamer.rename('t.a=e?.b??n(3)', ['e', 't', 'n'])
        assert result.value.params == ['module', 'exports', 'require']
        assert result.value.body == 'exports.a=module?.b??require(3)'
        assert not result.degraded

    def test_shorthand_and_member_names_with_optional_chaining(self, renamer):
        result = renamer.rename('return { t, x: t?.t };', ['t'])
        assert result.value.body == 'return { t: exports, x: exports?.t };'

    def test_offsets_after_non_ascii_text(self, renamer):
        result = renamer.rename('var s = "\u00e9t\u00e9"; t.x = s ?? e;', ['e', 't'])
        assert result.value.body == 'var s = "\u00e9t\u00e9"; exports.x = s ?? module;'

    def test_block_scoped_shadow_in_modern_body(self, renamer):
        result = renamer.rename('{ const t = a ?? 1; x(t); } return t;', ['t'])
        assert result.value.body == '{ const t = a ?? 1; x(t); } return exports;'


class TestDegradation:

    def test_unparsable_body_returned_verbatim(self, renamer):
        result = renamer.rename('t.x = ;', ['t'])
        assert result.degraded
        assert result.value.body == 't.x = ;'
        assert result.value.params == ['t']
        assert result.warnings[0].startswith('ModuleParseDegraded')

    def test_functional_form(self):
        assert rename('t.x=1', ['e', 't']).value.body == 'exports.x=1'
