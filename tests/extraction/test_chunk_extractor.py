"""Tests for ChunkExtractor."""

import pytest

from bundle_decompiler.extraction.chunk_extractor import ChunkExtractor, extract_module_table
from tests.conftest import (
    APP_BUNDLE,
    DOT_BUNDLE,
    INDEXED_BUNDLE,
    MINIMAL_BUNDLE,
    MULTI_PUSH_BUNDLE,
    PLAIN_SCRIPT,
)


@pytest.fixture
def extractor():
    return ChunkExtractor()


class TestExtract:

    def test_minimal_bundle(self, extractor):
        match = extractor.extract(MINIMAL_BUNDLE)
        assert match is not None
        assert match.chunk_ids == [1]
        start, end = match.module_table_span
        assert MINIMAL_BUNDLE[start:end] == '{7:(e,t)=>{t.x=1}}'

    def test_table_ends_at_real_closing_brace(self, extractor):
        text = 'self["webpackChunkq"].push([[1], {0: (e,t)=>{ const s = "{not a brace}"; return e+t; }}])'
        match = extractor.extract(text)
        start, end = match.module_table_span
        assert text[start:end] == '{0: (e,t)=>{ const s = "{not a brace}"; return e+t; }}'

    def test_app_bundle(self, extractor):
        match = extractor.extract(APP_BUNDLE)
        start, end = match.module_table_span
        assert match.chunk_ids == [179]
        assert APP_BUNDLE[start] == '{'
        assert APP_BUNDLE[end - 1] == '}'
        assert APP_BUNDLE[end:].strip() == ']);'

    def test_mixed_chunk_ids(self, extractor):
        match = extractor.extract(DOT_BUNDLE)
        assert match.chunk_ids == ['vendors', 12]

    def test_indexed_push(self, extractor):
        match = extractor.extract(INDEXED_BUNDLE)
        assert match.chunk_ids == [3]

    def test_commented_chunk_ids(self, extractor):
        text = 'self["webpackChunkz"].push([[1 /* main */, "b" // vendor\n], {1: (e) => {}}])'
        assert extractor.extract(text).chunk_ids == [1, 'b']

    def test_no_push_returns_none(self, extractor):
        assert extractor.extract(PLAIN_SCRIPT) is None

    def test_non_text_returns_none(self, extractor):
        assert extractor.extract(None) is None

    def test_functional_form(self):
        assert extract_module_table(MINIMAL_BUNDLE).chunk_ids == [1]


class TestExtractAll:

    def test_every_push_found_in_order(self, extractor):
        result = extractor.extract_all(MULTI_PUSH_BUNDLE)
        assert [m.chunk_ids for m in result.value] == [[1], [2]]
        assert result.warnings == []
        first, second = result.value
        assert first.module_table_span[1] <= second.module_table_span[0]

    def test_unbalanced_table_reports_warning(self, extractor):
        text = '(self["webpackChunkz"] = self["webpackChunkz"] || []).push([[1], {1: (e) => { e.x = 1; }'
        result = extractor.extract_all(text)
        assert result.value == []
        assert result.degraded
        assert result.warnings[0].startswith('ExtractionFailed')

    def test_table_must_be_object_literal(self, extractor):
        text = 'self["webpackChunkz"].push([[1], modules])'
        result = extractor.extract_all(text)
        assert result.value == []
        assert 'object literal' in result.warnings[0]

    def test_earlier_tables_kept_when_later_push_fails(self, extractor):
        text = MINIMAL_BUNDLE + ';\nself["webpackChunkx"].push([[2], {3: (e) => {'
        result = extractor.extract_all(text)
        assert [m.chunk_ids for m in result.value] == [[1]]
        assert len(result.warnings) == 1

    def test_no_push_no_warnings(self, extractor):
        result = extractor.extract_all(PLAIN_SCRIPT)
        assert result.value == []
        assert result.warnings == []
