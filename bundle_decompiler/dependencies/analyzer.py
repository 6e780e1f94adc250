"""Dependency extraction for module bodies.

Collects the module references a body makes through ``require(<literal>)``
calls and dynamic ``import(<literal>)`` expressions. Once the renamer has
turned the factory's require slot into ``require``, webpack's numeric
``n(5171)`` calls show up here as dependency ``"5171"``.
"""

import logging

from bundle_decompiler.domain.enums import BodyKind, WarningKind
from bundle_decompiler.domain.models import StageResult
from bundle_decompiler.transform.js_parser import JSParseError, Node, parse_body, walk

logger = logging.getLogger(__name__)

REQUIRE_NAME = 'require'


class DependencyAnalyzer:
    """Extracts require/import targets from module bodies.

    Works on the parse tree, so calls inside strings and comments are never
    mistaken for dependencies.
    """

    def analyze(self, body: str, body_kind: BodyKind = BodyKind.BLOCK) -> StageResult[list[str]]:
        """Extract dependencies of one module body.

        Args:
            body: Module body, usually after renaming.
            body_kind: Block or concise-expression body.

        Returns:
            StageResult listing dependency ids deduplicated in first-seen
            order. On a parse failure the list is empty and a warning is
            attached.
        """
        try:
            parsed = parse_body(body, (), body_kind)
        except JSParseError as e:
            message = f"{WarningKind.MODULE_PARSE_DEGRADED.value}: dependency extraction skipped ({e})"
            logger.warning(message)
            return StageResult([], [message], degraded=True)

        seen: set[str] = set()
        deps: list[str] = []
        for node in walk(parsed.tree):
            target = self._dependency_target(node)
            if target is not None and target not in seen:
                seen.add(target)
                deps.append(target)
        return StageResult(deps)

    # ── Node Matching ────────────────────────────────────────────────────

    def _dependency_target(self, node: Node) -> str | None:
        kind = node['type']
        if kind == 'CallExpression':
            callee = node.get('callee') or {}
            args = node.get('arguments') or []
            if not args:
                return None
            if callee.get('type') == 'Identifier' and callee.get('name') == REQUIRE_NAME:
                return self._literal_value(args[0])
            if callee.get('type') == 'Import':
                return self._literal_value(args[0])
        elif kind == 'ImportExpression':
            return self._literal_value(node.get('source'))
        return None

    @staticmethod
    def _literal_value(node: Node | None) -> str | None:
        if not node or node.get('type') != 'Literal':
            return None
        value = node.get('value')
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return None


def extract_dependencies(body: str) -> list[str]:
    """Dependency ids of ``body``; empty when it cannot be parsed."""
    return DependencyAnalyzer().analyze(body).value
