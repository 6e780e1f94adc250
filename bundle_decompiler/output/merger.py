"""Builds the merged, annotated document from processed modules."""

from bundle_decompiler.domain.constants import NO_MODULES_PLACEHOLDER
from bundle_decompiler.domain.models import ProcessedModule


class ModuleMerger:
    """Concatenates processed modules in split order, each under a header."""

    def merge(self, modules: list[ProcessedModule]) -> str:
        if not modules:
            return NO_MODULES_PLACEHOLDER
        return '\n\n'.join(self.render_module(m) for m in modules)

    @staticmethod
    def render_header(module: ProcessedModule) -> str:
        params = ', '.join(module.renamed_params)
        deps = ', '.join(module.dependencies) or 'none'
        return (
            f"// ======== Module {module.id or 'anonymous'} ========\n"
            f"// Parameters: {params}\n"
            f"// Dependencies: {deps}\n"
        )

    def render_module(self, module: ProcessedModule) -> str:
        return self.render_header(module) + (module.formatted_body or '// Empty module\n')
