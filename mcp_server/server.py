"""
Bundle Decompiler — MCP Server.

Exposes webpack 5 chunk decompilation to LLM clients via the Model Context
Protocol. Tools take a path to a bundle file on the local filesystem.

Usage:
    python -m mcp_server.server [--workers N] [--no-rename]
"""

from __future__ import annotations

import json
import os
import sys
from collections import OrderedDict

from mcp.server.fastmcp import FastMCP

from bundle_decompiler.bundle_reader import BundleReader, InputReadError
from bundle_decompiler.domain.models import DecompileOptions, PipelineResult
from bundle_decompiler.format_detector import FormatDetector
from bundle_decompiler.pipeline import decompile

# ── Globals ─────────────────────────────────────────────────────────────

mcp = FastMCP("bundle-decompiler")
_options = DecompileOptions()


class ResultCache:
    """LRU cache of decompile results keyed by path and modification time."""

    def __init__(self, maxsize: int = 16):
        self._maxsize = maxsize
        self._cache: OrderedDict[tuple[str, float], PipelineResult] = OrderedDict()

    def get(self, path: str) -> PipelineResult:
        path = os.path.abspath(path)
        try:
            key = (path, os.path.getmtime(path))
        except OSError as e:
            raise InputReadError(f"{path} not found") from e

        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        source = BundleReader().read(path)
        result = decompile(source.text, _options)
        self._cache[key] = result
        if len(self._cache) > self._maxsize:
            self._cache.popitem(last=False)
        return result

    def clear(self) -> None:
        self._cache.clear()


_results = ResultCache()


def _truncate(data: dict | list, max_chars: int = 80_000) -> dict | list:
    text = json.dumps(data, ensure_ascii=False)
    if len(text) <= max_chars:
        return data
    return {
        "_truncated": True,
        "_message": f"Response too large ({len(text):,} chars). Use list_modules and get_module instead.",
    }


# ── Tools ───────────────────────────────────────────────────────────────


@mcp.tool()
def detect_bundle(path: str) -> dict:
    """Check whether a file is a webpack 5 chunk bundle.

    Args:
        path: Path to the JavaScript file.
    """
    try:
        source = BundleReader().read(path)
    except InputReadError as e:
        return {"error": str(e), "path": path}
    detection = FormatDetector().detect(source.text)
    return {
        "path": path,
        "matched": detection.matched,
        "bundle_format": detection.bundle_format,
        "global_name": detection.global_name,
        "style": detection.style,
    }


@mcp.tool()
def decompile_bundle(path: str) -> dict:
    """Decompile a bundle: merged readable code, per-module summaries and warnings.

    Args:
        path: Path to the bundle file.
    """
    try:
        result = _results.get(path)
    except InputReadError as e:
        return {"error": str(e), "path": path}
    return _truncate(result.to_dict())


@mcp.tool()
def list_modules(path: str) -> dict:
    """List the modules of a bundle with their parameters and dependencies (no code).

    Call this before get_module to find module ids.

    Args:
        path: Path to the bundle file.
    """
    try:
        result = _results.get(path)
    except InputReadError as e:
        return {"error": str(e), "path": path}
    return {
        "path": path,
        "bundle_format": result.bundle_format,
        "chunk_ids": result.chunk_ids,
        "modules": [
            {"id": m.id, "params": m.params, "dependencies": m.dependencies}
            for m in result.modules
        ],
        "warnings": result.warnings,
    }


@mcp.tool()
def get_module(path: str, module_id: str) -> dict:
    """Get the readable code of one module.

    Args:
        path: Path to the bundle file.
        module_id: Module id as reported by list_modules.
    """
    try:
        result = _results.get(path)
    except InputReadError as e:
        return {"error": str(e), "path": path}
    for module in result.modules:
        if module.id == str(module_id):
            return module.to_dict()
    return {"error": f"Module '{module_id}' not found", "module_id": module_id}


# ── Entry point ─────────────────────────────────────────────────────────

def main():
    import argparse

    parser = argparse.ArgumentParser(description="Bundle Decompiler MCP Server")
    parser.add_argument("--workers", type=int, default=1, help="Worker threads per bundle (default: 1)")
    parser.add_argument("--no-rename", action="store_true", help="Keep minified parameter names")

    args = parser.parse_args()
    if args.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        sys.exit(1)

    global _options
    _options = DecompileOptions(max_workers=args.workers, rename=not args.no_rename)
    _results.clear()

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
