"""Shared data models used across pipeline stages."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from bundle_decompiler.domain.enums import BodyKind

T = TypeVar('T')

Span = tuple[int, int]


@dataclass
class StageResult(Generic[T]):
    """Outcome of a stage that may degrade instead of failing.

    ``value`` is always usable: either the stage's real output or the
    best available substitute when ``degraded`` is set.
    """

    value: T
    warnings: list[str] = field(default_factory=list)
    degraded: bool = False


@dataclass(frozen=True)
class ChunkMatch:
    """One chunk push call located in a bundle."""

    chunk_ids: list[int | str]
    module_table_span: Span


@dataclass(frozen=True)
class ModuleRecord:
    """A module factory split out of a module table, verbatim."""

    id: str
    params: tuple[str, ...]
    raw_body: str
    original_span: Span
    body_kind: BodyKind = BodyKind.BLOCK


@dataclass
class ProcessedModule:
    """A module record plus the fields derived from it."""

    record: ModuleRecord
    renamed_params: list[str]
    renamed_body: str
    dependencies: list[str]
    formatted_body: str

    @property
    def id(self) -> str:
        return self.record.id


@dataclass
class ModuleSummary:
    """Per-module view returned to callers."""

    id: str
    dependencies: list[str]
    params: list[str] = field(default_factory=list)
    code: str = ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'dependencies': list(self.dependencies),
            'params': list(self.params),
            'code': self.code,
        }


@dataclass
class PipelineResult:
    """Result of one decompile run."""

    merged_code: str
    modules: list[ModuleSummary] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    bundle_format: str | None = None
    chunk_ids: list[int | str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            'bundle_format': self.bundle_format,
            'chunk_ids': list(self.chunk_ids),
            'merged_code': self.merged_code,
            'modules': [m.to_dict() for m in self.modules],
            'warnings': list(self.warnings),
        }


@dataclass
class DecompileOptions:
    """Options controlling a decompile run."""

    max_workers: int = 1
    rename: bool = True
    include_dependencies: bool = True
    indent_size: int = 2
    max_preserve_newlines: int = 2
