"""Decompile pipeline: detect, extract, split, rename, link, format, merge.

    decompile(text) -> PipelineResult

The pipeline never raises. Any stage that cannot do its job degrades to the
best output it can still produce and records a warning; when no module table
can be recovered at all, the whole input is just re-formatted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from bundle_decompiler.dependencies.analyzer import DependencyAnalyzer
from bundle_decompiler.domain.constants import BUNDLE_FORMAT, FALLBACK_WARNING
from bundle_decompiler.domain.enums import BodyKind, WarningKind
from bundle_decompiler.domain.models import (
    DecompileOptions,
    ModuleRecord,
    ModuleSummary,
    PipelineResult,
    ProcessedModule,
)
from bundle_decompiler.extraction.chunk_extractor import ChunkExtractor
from bundle_decompiler.extraction.module_splitter import ModuleSplitter
from bundle_decompiler.format_detector import FormatDetector
from bundle_decompiler.output.merger import ModuleMerger
from bundle_decompiler.transform.formatter import format_code
from bundle_decompiler.transform.renamer import IdentifierRenamer

logger = logging.getLogger(__name__)


def coerce_text(bundle_text) -> str:
    """Turn any input into text: bytes are decoded as UTF-8 with replacement."""
    if isinstance(bundle_text, str):
        return bundle_text
    if bundle_text is None:
        return ''
    if isinstance(bundle_text, (bytes, bytearray)):
        return bytes(bundle_text).decode('utf-8', errors='replace')
    return str(bundle_text)


def assemble_factory(params, body: str, body_kind: BodyKind = BodyKind.BLOCK) -> str:
    """Rebuild a module factory around a (possibly renamed) body."""
    joined = ', '.join(params)
    if body_kind == BodyKind.EXPRESSION:
        return f"(({joined}) => (\n{body}\n))"
    return f"(function ({joined}) {{\n{body}\n}})"


class ModuleProcessor:
    """Runs rename, dependency extraction and formatting for single modules."""

    def __init__(self, options: DecompileOptions):
        self.options = options
        self.renamer = IdentifierRenamer()
        self.analyzer = DependencyAnalyzer()

    def process(self, record: ModuleRecord) -> tuple[ProcessedModule, list[str]]:
        """Process one record; failures degrade the module, never the run."""
        warnings: list[str] = []
        params = list(record.params)
        body = record.raw_body

        if self.options.rename:
            try:
                renamed = self.renamer.rename(body, params, record.body_kind)
                params, body = renamed.value.params, renamed.value.body
                warnings.extend(self._tag(record, w) for w in renamed.warnings)
            except Exception as e:
                warnings.append(self._failure(record, 'rename', e))

        dependencies: list[str] = []
        if self.options.include_dependencies:
            try:
                deps = self.analyzer.analyze(body, record.body_kind)
                dependencies = deps.value
                warnings.extend(self._tag(record, w) for w in deps.warnings)
            except Exception as e:
                warnings.append(self._failure(record, 'dependency extraction', e))

        formatted = format_code(
            assemble_factory(params, body, record.body_kind),
            indent_size=self.options.indent_size,
            max_preserve_newlines=self.options.max_preserve_newlines,
        )

        module = ProcessedModule(
            record=record,
            renamed_params=params,
            renamed_body=body,
            dependencies=dependencies,
            formatted_body=formatted,
        )
        return module, warnings

    @staticmethod
    def _tag(record: ModuleRecord, warning: str) -> str:
        return f"Module {record.id}: {warning}"

    def _failure(self, record: ModuleRecord, stage: str, error: Exception) -> str:
        logger.warning("Module %s: %s failed", record.id, stage, exc_info=True)
        return self._tag(record, f"{WarningKind.MODULE_PARSE_DEGRADED.value}: {stage} failed ({error})")


class DecompilePipeline:
    """Wires the stages together for one decompile run at a time."""

    def __init__(self, options: DecompileOptions | None = None):
        self.options = options or DecompileOptions()
        self.detector = FormatDetector()
        self.extractor = ChunkExtractor()
        self.splitter = ModuleSplitter()
        self.merger = ModuleMerger()

    def run(self, bundle_text) -> PipelineResult:
        text = ''
        try:
            text = coerce_text(bundle_text)
            return self._run(text)
        except Exception as e:
            logger.exception("Decompile failed unexpectedly")
            return self._fallback(text, [f"{WarningKind.INTERNAL_SCAN_ERROR.value}: Internal error ({e})"])

    # ── Stages ───────────────────────────────────────────────────────────

    def _run(self, text: str) -> PipelineResult:
        detection = self.detector.detect(text)
        if not detection.matched:
            logger.info("%s: no chunk push signature found", WarningKind.FORMAT_NOT_RECOGNIZED.value)
            return self._fallback(text, [])
        logger.debug("Detected %s bundle (%s push) at offset %d",
                     detection.bundle_format, detection.style, detection.offset)

        extracted = self.extractor.extract_all(text)
        warnings = list(extracted.warnings)
        if not extracted.value:
            return self._fallback(text, warnings)

        records: list[ModuleRecord] = []
        chunk_ids: list[int | str] = []
        for match in extracted.value:
            chunk_ids.extend(match.chunk_ids)
            split = self.splitter.split(text, match)
            records.extend(split.value)
            warnings.extend(split.warnings)

        if not records:
            return self._fallback(text, warnings)

        processed = self._process_all(records)
        modules: list[ProcessedModule] = []
        for module, module_warnings in processed:
            modules.append(module)
            warnings.extend(module_warnings)

        logger.info("Decompiled %d module(s) from %d chunk push(es)", len(modules), len(extracted.value))
        return PipelineResult(
            merged_code=self.merger.merge(modules),
            modules=[
                ModuleSummary(id=m.id, dependencies=m.dependencies, params=m.renamed_params, code=m.formatted_body)
                for m in modules
            ],
            warnings=warnings,
            bundle_format=BUNDLE_FORMAT,
            chunk_ids=chunk_ids,
        )

    def _process_all(self, records: list[ModuleRecord]) -> list[tuple[ProcessedModule, list[str]]]:
        processor = ModuleProcessor(self.options)
        workers = max(1, self.options.max_workers or 1)
        if workers == 1 or len(records) == 1:
            return [processor.process(r) for r in records]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(processor.process, records))

    def _fallback(self, text: str, warnings: list[str]) -> PipelineResult:
        logger.warning(FALLBACK_WARNING)
        merged = format_code(
            text,
            indent_size=self.options.indent_size,
            max_preserve_newlines=self.options.max_preserve_newlines,
        )
        return PipelineResult(merged_code=merged, modules=[], warnings=warnings + [FALLBACK_WARNING])


def decompile(bundle_text, options: DecompileOptions | None = None) -> PipelineResult:
    """Decompile a webpack 5 chunk bundle into annotated, readable modules.

    Args:
        bundle_text: Bundle source; str, bytes or anything str() accepts.
        options: Run options; defaults apply when omitted.

    Returns:
        PipelineResult. Never raises.
    """
    return DecompilePipeline(options).run(bundle_text)
