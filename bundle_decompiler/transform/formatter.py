"""Re-indentation of JavaScript via jsbeautifier."""

import logging

import jsbeautifier

from bundle_decompiler.domain.constants import BEAUTIFIER_SETTINGS

logger = logging.getLogger(__name__)


def build_options(indent_size: int = 2, max_preserve_newlines: int = 2):
    """jsbeautifier options with the fixed house style applied."""
    options = jsbeautifier.default_options()
    for name, value in BEAUTIFIER_SETTINGS.items():
        setattr(options, name, value)
    options.indent_size = indent_size
    options.max_preserve_newlines = max_preserve_newlines
    return options


def format_code(code: str, indent_size: int = 2, max_preserve_newlines: int = 2) -> str:
    """Re-indent and re-space ``code``; returns it unchanged if beautifying fails."""
    if not isinstance(code, str):
        code = '' if code is None else str(code)
    try:
        return jsbeautifier.beautify(code, build_options(indent_size, max_preserve_newlines))
    except Exception:
        logger.warning("Beautification failed, keeping input as is", exc_info=True)
        return code
