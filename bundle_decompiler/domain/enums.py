"""Domain enums for the bundle decompiler."""
from enum import Enum


class RenameContext(Enum):
    """Lookup table selector for parameter renaming."""
    COMMON = "COMMON"
    EVENT_HANDLER = "EVENT_HANDLER"
    CALLBACK = "CALLBACK"


class WarningKind(Enum):
    """Degradation categories reported in pipeline warnings."""
    FORMAT_NOT_RECOGNIZED = "FormatNotRecognized"
    EXTRACTION_FAILED = "ExtractionFailed"
    MODULE_PARSE_DEGRADED = "ModuleParseDegraded"
    INTERNAL_SCAN_ERROR = "InternalScanError"


class BodyKind(Enum):
    """Shape of a module factory body."""
    BLOCK = "block"
    EXPRESSION = "expression"
