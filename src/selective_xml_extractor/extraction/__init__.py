"""Extraction layer: the span walk and output document serialization.

Key Components:
    SelectiveExtractor: Single-pass extractor over the token stream
    ExtractionResult: Fragments plus counts, diagnostics and metrics
    DocumentWriter: Writes chunked fragments as standalone XML documents
"""

from .extractor import (
    ExtractionResult,
    ExtractionStatus,
    ParseCursor,
    SelectiveExtractor,
)
from .output import (
    DocumentWriter,
    chunk_fragments,
    output_file_name,
    render_document,
)
from .serializer import SpanBuffer

__all__ = [
    "DocumentWriter",
    "ExtractionResult",
    "ExtractionStatus",
    "ParseCursor",
    "SelectiveExtractor",
    "SpanBuffer",
    "chunk_fragments",
    "output_file_name",
    "render_document",
]
