"""Shared utilities for selective XML extraction.

This module provides configuration objects, the exception hierarchy,
diagnostic and performance types, and logging helpers used across all
processing layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    DownloadConfig,
    ExtractionConfig,
    ExtractorConfig,
    GlobalConfig,
    OutputConfig,
    TokenizerConfig,
)
from .errors import (
    AcquisitionError,
    ExtractionCancelledError,
    ExtractorError,
    MalformedInputError,
    ReferenceSourceError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DownloadConfig",
    "ExtractionConfig",
    "ExtractorConfig",
    "GlobalConfig",
    "OutputConfig",
    "TokenizerConfig",
    "AcquisitionError",
    "ExtractionCancelledError",
    "ExtractorError",
    "MalformedInputError",
    "ReferenceSourceError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
