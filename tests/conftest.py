"""Shared test fixtures."""

import pytest


# ── Sample Bundles ───────────────────────────────────────────────────────

MINIMAL_BUNDLE = '(global["webpackChunkx"]=global["webpackChunkx"]||[]).push([[1],{7:(e,t)=>{t.x=1}}])'

APP_BUNDLE = """\
"use strict";
(self["webpackChunkapp"] = self["webpackChunkapp"] || []).push([[179], {
  5171: function (e, t, n) {
    var r = n(3040);
    t.render = function (o) { return r.h("div", o); };
  },
  3040: (e, t, n) => {
    const s = "{not a brace}";
    t.h = function (i, a) { return s + i + a; };
  },
  "./src/util.js": (e, t) => {
    t.now = function () { return Date.now(); };
  }
}]);
"""

DOT_BUNDLE = """\
(self.webpackChunkshop = self.webpackChunkshop || []).push([["vendors", 12], {
  100: e => { e.exports = 42; },
  101: (e, t, n) => ({ a: n(100) })
}]);
"""

MULTI_PUSH_BUNDLE = """\
(self["webpackChunkapp"] = self["webpackChunkapp"] || []).push([[1], {
  10: (e, t) => { t.a = 1; }
}]);
(self["webpackChunkapp"] = self["webpackChunkapp"] || []).push([[2], {
  20: (e, t) => { t.b = 2; }
}]);
"""

INDEXED_BUNDLE = 'window["webpackChunkweb"].push([[3], {42: (e, t, n) => { n("7"); }}]);'

HANDLER_BUNDLE = """\
(self["webpackChunkui"] = self["webpackChunkui"] || []).push([[5], {
  8: (e, t, n) => {
    t.widget = {
      click: function (e) { e.preventDefault(); },
      callback: function (t, a) { return t !== a; }
    };
  }
}]);
"""

UNPARSABLE_BODY_BUNDLE = """\
(self["webpackChunkbad"] = self["webpackChunkbad"] || []).push([[9], {
  1: (e, t) => { t.ok = 1; },
  2: (e, t) => { t.broken = ; }
}]);
"""

PLAIN_SCRIPT = 'const x = 1;'


@pytest.fixture
def bundle_file(tmp_path):
    """Write APP_BUNDLE to a file and return its path."""
    path = tmp_path / 'app.chunk.js'
    path.write_text(APP_BUNDLE, encoding='utf-8')
    return str(path)


@pytest.fixture
def plain_file(tmp_path):
    """Write a non-bundle script to a file and return its path."""
    path = tmp_path / 'plain.js'
    path.write_text(PLAIN_SCRIPT, encoding='utf-8')
    return str(path)
