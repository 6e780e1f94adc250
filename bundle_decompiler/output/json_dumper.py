"""JSON output generation.

Writes a decompile result and its warnings to an output directory.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any

from bundle_decompiler.domain.models import PipelineResult

DUMPER_VERSION = '1.0.0'


class JSONDumper:
    """Writes decompile results as JSON.

    Output structure:
        output_dir/
        ├── result.json
        └── warnings.json (only if warnings)

    Args:
        output_dir: Root directory for output files.
        pretty: Whether to pretty-print JSON (default True).
    """

    def __init__(self, output_dir: str, pretty: bool = True) -> None:
        self._output_dir = output_dir
        self._indent = 2 if pretty else None

    def write_result(self, result: PipelineResult, source_file: str = '') -> str:
        """Write the full result with a metadata envelope; returns the file path."""
        os.makedirs(self._output_dir, exist_ok=True)
        envelope = {
            '_metadata': {
                'dumper_version': DUMPER_VERSION,
                'decompiled_at': datetime.now(timezone.utc).isoformat(),
                'source_file': source_file,
                'module_count': len(result.modules),
                'warning_count': len(result.warnings),
            },
            **result.to_dict(),
        }
        path = os.path.join(self._output_dir, 'result.json')
        self._write_json(path, envelope)
        return path

    def write_warnings(self, warnings: list[str]) -> str | None:
        """Write warnings (only if any exist)."""
        if not warnings:
            return None
        os.makedirs(self._output_dir, exist_ok=True)
        path = os.path.join(self._output_dir, 'warnings.json')
        self._write_json(path, list(warnings))
        return path

    def _write_json(self, path: str, data: Any) -> None:
        """Write data as JSON to a file."""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=self._indent, ensure_ascii=False, default=str)


def to_json(result: PipelineResult, pretty: bool = True) -> str:
    """Serialize a result the same way the dumper writes it, minus the envelope."""
    return json.dumps(result.to_dict(), indent=2 if pretty else None, ensure_ascii=False, default=str)
