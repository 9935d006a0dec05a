"""Command-line interface module for the selective XML extractor.

This module provides the ds-xml tool: input acquisition, reference id loading,
extraction and chunked output with per-chunk progress reporting.
"""

from .main import main

__all__ = ["main"]
