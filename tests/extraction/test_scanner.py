"""Tests for the depth-aware structure scanner."""

import pytest

from bundle_decompiler.extraction.scanner import (
    ScanError,
    StructureScanner,
    find_closing,
    skip_trivia,
    split_top_level,
    strip_span,
)


class TestFindClosing:

    def test_simple_object(self):
        text = '{a: {b: 1}}'
        assert find_closing(text, 0) == len(text) - 1

    def test_brace_inside_string_ignored(self):
        text = '{s: "{not a brace}", t: \'}\'}'
        assert find_closing(text, 0) == len(text) - 1

    def test_brace_inside_template_ignored(self):
        text = '{s: `}${ {a: 1}.a }}`}'
        assert find_closing(text, 0) == len(text) - 1

    def test_brace_inside_comments_ignored(self):
        text = '{a: 1 // }\n, b: /* } */ 2}'
        assert find_closing(text, 0) == len(text) - 1

    def test_brace_inside_regex_ignored(self):
        text = '{r: /[}]+/g, s: x.replace(/\\}/, "")}'
        assert find_closing(text, 0) == len(text) - 1

    def test_division_is_not_a_regex(self):
        text = '(a / b / c)'
        assert find_closing(text, 0) == len(text) - 1

    def test_unbalanced_returns_none(self):
        assert find_closing('{a: {b: 1}', 0) is None

    def test_not_an_opener_returns_none(self):
        assert find_closing('abc', 0) is None

    def test_mismatched_closer_raises(self):
        with pytest.raises(ScanError):
            find_closing('{a: (1}', 0)

    def test_respects_end_bound(self):
        text = '{a: 1} {b: 2}'
        assert find_closing(text, 7, 10) is None


class TestSplitTopLevel:

    def test_splits_on_top_level_commas(self):
        text = 'a, f(b, c), [d, e], {g: h, i: j}'
        parts = [text[s:e].strip() for s, e in split_top_level(text, 0, len(text))]
        assert parts == ['a', 'f(b, c)', '[d, e]', '{g: h, i: j}']

    def test_commas_in_strings_ignored(self):
        text = '"a,b", \'c,d\''
        assert len(split_top_level(text, 0, len(text))) == 2

    def test_no_separator_single_span(self):
        assert split_top_level('abc', 0, 3) == [(0, 3)]

    def test_unbalanced_region_raises(self):
        with pytest.raises(ScanError):
            split_top_level('a, (b', 0, 5)


class TestStructureScanner:

    def test_reports_depths(self):
        scanner = StructureScanner('{a: [1]}')
        events = [(ch, depth) for _, ch, depth in scanner]
        assert events == [('{', 0), (':', 1), ('[', 1), (']', 1), ('}', 0)]
        assert scanner.balanced

    def test_unclosed_is_not_balanced(self):
        scanner = StructureScanner('{a: 1')
        list(scanner)
        assert not scanner.balanced


class TestTrivia:

    def test_skip_trivia(self):
        text = '  /* c */ // line\n  x'
        assert text[skip_trivia(text, 0)] == 'x'

    def test_strip_span(self):
        text = '  abc  '
        assert strip_span(text, (0, len(text))) == (2, 5)

    def test_strip_span_drops_trailing_comments(self):
        text = ' 1 /* c */ // d\n'
        assert strip_span(text, (0, len(text))) == (1, 2)

    def test_strip_span_keeps_comment_markers_inside_strings(self):
        text = '"a /* b */" '
        assert strip_span(text, (0, len(text))) == (0, len(text) - 1)


class TestControlFlowHeads:

    def test_regex_after_if_head(self):
        text = '{a: (x) => { if (t) /[{]/.test(e) }}'
        assert find_closing(text, 0) == len(text) - 1

    def test_regex_after_while_and_for_heads(self):
        text = '{while (a) /[(]/.exec(s); for (;;) /}/.test(s)}'
        assert find_closing(text, 0) == len(text) - 1

    def test_call_paren_still_divides(self):
        text = '(f(a) / 2 / g(b))'
        assert find_closing(text, 0) == len(text) - 1

    def test_member_named_if_is_not_a_head(self):
        text = '(x.if(a) / 2 / 3)'
        assert find_closing(text, 0) == len(text) - 1
