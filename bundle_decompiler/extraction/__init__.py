"""Chunk extraction: locating module tables and splitting them into records."""

from bundle_decompiler.extraction.chunk_extractor import ChunkExtractor, extract_module_table
from bundle_decompiler.extraction.module_splitter import FactoryShapeError, ModuleSplitter, split_modules
from bundle_decompiler.extraction.scanner import ScanError, StructureScanner, find_closing, split_top_level

__all__ = [
    'ChunkExtractor', 'extract_module_table',
    'FactoryShapeError', 'ModuleSplitter', 'split_modules',
    'ScanError', 'StructureScanner', 'find_closing', 'split_top_level',
]
