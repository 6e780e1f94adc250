"""Format detection for webpack 5 chunk bundles."""

import logging
from dataclasses import dataclass

from bundle_decompiler.domain.constants import BUNDLE_FORMAT, CHUNK_PUSH_PATTERNS

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    matched: bool
    bundle_format: str | None = None
    global_name: str | None = None
    scope: str | None = None
    style: str | None = None
    offset: int = -1


class FormatDetector:
    """Determines whether raw text is a webpack 5 chunk bundle.

    Recognizes the named-global registration followed by a push call, and
    the bare bracket-indexed push without the registration. Signature based
    only; the module table itself is not inspected.
    """

    def detect(self, text) -> DetectionResult:
        if not isinstance(text, str):
            return DetectionResult(False)

        try:
            best = None
            for style, pattern in CHUNK_PUSH_PATTERNS:
                m = pattern.search(text)
                if m and (best is None or m.start() < best[1].start()):
                    best = (style, m)

            if best is None:
                return DetectionResult(False)

            style, m = best
            name = m.groupdict().get('name') or m.groupdict().get('dotname')
            return DetectionResult(
                matched=True,
                bundle_format=BUNDLE_FORMAT,
                global_name=name,
                scope=m.group('scope'),
                style=style,
                offset=m.start(),
            )
        except Exception:
            logger.warning("Format detection failed", exc_info=True)
            return DetectionResult(False)


def detect(text) -> bool:
    """Return True when ``text`` contains a webpack 5 chunk push; never raises."""
    return FormatDetector().detect(text).matched
