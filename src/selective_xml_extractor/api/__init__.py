"""Public API layer for selective XML extraction."""

from .extractor import extract, extract_file

__all__ = ["extract", "extract_file"]
