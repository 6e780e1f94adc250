"""Writes decompiled modules to disk, one file per module."""

import json
import logging
import os
import re
from dataclasses import dataclass

from bundle_decompiler.domain.models import ModuleSummary, PipelineResult
from bundle_decompiler.output.json_dumper import JSONDumper

logger = logging.getLogger(__name__)

MERGED_FILENAME = 'merged.js'
INDEX_FILENAME = '_index.json'


@dataclass
class WriteResult:
    """Result summary of a write operation."""

    output_dir: str
    module_files: int
    merged_file: str
    warnings_file: str | None = None


def _sanitize_filename(module_id: str, position: int) -> str:
    """Create a safe .js filename from a module id; the position disambiguates."""
    sanitized = re.sub(r'[^\w\-.]', '_', module_id or '').strip('.')[:80]
    if not sanitized:
        sanitized = f'module_{position}'
    return sanitized if sanitized.endswith('.js') else f'{sanitized}.js'


class ModuleWriter:
    """Writes a PipelineResult as a directory of readable files.

    Output structure:
        output_dir/
        ├── merged.js
        ├── result.json
        ├── warnings.json (only if warnings)
        └── modules/
            ├── _index.json
            └── {module_id}.js
    """

    def __init__(self, output_dir: str, pretty: bool = True) -> None:
        self._output_dir = output_dir
        self._pretty = pretty

    def write_all(self, result: PipelineResult, source_file: str = '') -> WriteResult:
        os.makedirs(self._output_dir, exist_ok=True)

        merged_path = os.path.join(self._output_dir, MERGED_FILENAME)
        with open(merged_path, 'w', encoding='utf-8') as f:
            f.write(result.merged_code)

        count = self.write_modules(result.modules)

        dumper = JSONDumper(self._output_dir, pretty=self._pretty)
        dumper.write_result(result, source_file=source_file)
        warnings_path = dumper.write_warnings(result.warnings)

        logger.info("Wrote %d module file(s) to %s", count, self._output_dir)
        return WriteResult(
            output_dir=self._output_dir,
            module_files=count,
            merged_file=merged_path,
            warnings_file=warnings_path,
        )

    def write_modules(self, modules: list[ModuleSummary]) -> int:
        """Write each module to modules/ and an index describing them."""
        modules_dir = os.path.join(self._output_dir, 'modules')
        os.makedirs(modules_dir, exist_ok=True)

        used: set[str] = set()
        index = []
        for position, module in enumerate(modules):
            filename = _sanitize_filename(module.id, position)
            if filename in used:
                filename = f'{filename[:-3]}_{position}.js'
            used.add(filename)

            with open(os.path.join(modules_dir, filename), 'w', encoding='utf-8') as f:
                f.write(module.code)
            index.append({
                'id': module.id,
                'params': list(module.params),
                'dependencies': list(module.dependencies),
                'file': filename,
            })

        with open(os.path.join(modules_dir, INDEX_FILENAME), 'w', encoding='utf-8') as f:
            json.dump(index, f, indent=2 if self._pretty else None, ensure_ascii=False)
        return len(index)
