"""Tests for SpanOverlay."""

import pytest

from bundle_decompiler.transform.overlay import SpanOverlay


class TestSpanOverlay:

    def setup_method(self):
        self.overlay = SpanOverlay('a + b + a')

    def test_render_without_edits(self):
        assert self.overlay.render() == 'a + b + a'

    def test_overwrite(self):
        self.overlay.overwrite(0, 1, 'alpha')
        self.overlay.overwrite(8, 9, 'alpha')
        assert self.overlay.render() == 'alpha + b + alpha'
        assert len(self.overlay) == 2

    def test_render_sub_span(self):
        self.overlay.overwrite(4, 5, 'beta')
        assert self.overlay.render((4, 9)) == 'beta + a'

    def test_edits_outside_span_ignored(self):
        self.overlay.overwrite(0, 1, 'alpha')
        assert self.overlay.render((4, 9)) == 'b + a'

    def test_identical_edit_is_noop(self):
        self.overlay.overwrite(0, 1, 'x')
        self.overlay.overwrite(0, 1, 'x')
        assert len(self.overlay) == 1

    def test_overlap_rejected(self):
        self.overlay.overwrite(0, 5, 'x')
        with pytest.raises(ValueError):
            self.overlay.overwrite(4, 5, 'y')

    def test_invalid_span_rejected(self):
        with pytest.raises(ValueError):
            self.overlay.overwrite(5, 4, 'y')
