"""Exception hierarchy for selective XML extraction.

Library code raises these; only the command-line layer turns them into
messages and exit codes. "No matching entries" is a result status, not an
exception.
"""

from typing import Optional


class ExtractorError(Exception):
    """Base exception for all extraction failures."""


class MalformedInputError(ExtractorError):
    """Tokenization could not continue: invalid syntax or truncated input."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None
    ) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class ExtractionCancelledError(ExtractorError):
    """The caller's cancellation check fired between two tokens."""

    def __init__(self, tokens_processed: int) -> None:
        super().__init__(f"Extraction cancelled after {tokens_processed} tokens")
        self.tokens_processed = tokens_processed


class AcquisitionError(ExtractorError):
    """Input bytes could not be downloaded or unpacked."""


class ReferenceSourceError(ExtractorError):
    """The reference identifier source could not be read."""
