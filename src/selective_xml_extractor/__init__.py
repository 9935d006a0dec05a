"""Selective XML Extractor.

Pulls parent elements out of a large XML document when their content holds
one of a set of externally supplied reference ids, and re-emits them
verbatim inside a new document with a synthetic root element.

Progressive API Disclosure:
- Level 1: Simple functions - extract(), extract_file()
- Level 2: Configured extractor - SelectiveExtractor with ExtractorConfig
- Level 3: Token level - XMLTokenizer.iter_tokens() and SelectiveExtractor.extract_tokens()
"""

__version__ = "0.1.0"
__author__ = "Selective XML Extractor Team"

from .api import extract, extract_file
from .extraction import (
    DocumentWriter,
    ExtractionResult,
    ExtractionStatus,
    SelectiveExtractor,
)
from .shared import (
    ExtractorConfig,
    ExtractorError,
    MalformedInputError,
)
from .sources import read_reference_ids, reference_set

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple extraction functions
    "extract",
    "extract_file",

    # Level 2: Configured extractor and output
    "SelectiveExtractor",
    "DocumentWriter",
    "ExtractorConfig",

    # Result objects
    "ExtractionResult",
    "ExtractionStatus",

    # Errors
    "ExtractorError",
    "MalformedInputError",

    # Reference ids
    "read_reference_ids",
    "reference_set",
]
