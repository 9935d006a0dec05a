"""Single-pass selective extractor.

The extractor walks the token stream once, keeping a small cursor: nesting
depth, the depth at which the current capture span opened, whether a
qualifying reference value has been seen, and the re-serialized markup of the
span so far. A span opens at an element whose local name is the configured
parent name and closes at the close tag found at the same depth; matching
spans are emitted in document order.

Behaviours worth knowing:

* A parent-named element nested inside an open span restarts the span at the
  inner element, which is matched on its own content. What the outer element
  buffered so far is dropped and its remainder lies outside any span. Every
  parent-named element counts in ``spans_considered``.
* Namespace declarations made on ancestors outside the span are copied onto
  the fragment's root element for the prefixes the fragment uses.
* When a token stream ends with a span still open the span is dropped, a
  warning is logged and the result is flagged ``unterminated_span``. Raw byte
  input cannot get there: the tokenizer rejects truncated documents.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import (
    AbstractSet,
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
)

import psutil

from selective_xml_extractor.shared import (
    ConfigValidationError,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractionCancelledError,
    ExtractionConfig,
    PerformanceMetrics,
    TokenizerConfig,
    get_logger,
)
from selective_xml_extractor.tokenization import Token, TokenType, XMLTokenizer
from selective_xml_extractor.tokenization.tokenizer import InputBytes

from .serializer import SpanBuffer, namespace_declarations, used_prefixes

CancelCheck = Callable[[], bool]
MS_PER_SECOND = 1000


class ExtractionStatus(Enum):
    """Outcome of an extraction pass that did not raise."""

    MATCHED = auto()      # At least one fragment was produced
    NO_MATCHES = auto()   # Valid input, zero spans matched


@dataclass
class ExtractionResult:
    """Fragments produced by one extraction pass plus reporting data."""

    fragments: List[str] = field(default_factory=list)
    parent_name: str = ""
    child_name: str = ""
    spans_considered: int = 0
    unterminated_span: bool = False

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def status(self) -> ExtractionStatus:
        return ExtractionStatus.MATCHED if self.fragments else ExtractionStatus.NO_MATCHES

    @property
    def is_empty(self) -> bool:
        return not self.fragments

    @property
    def spans_matched(self) -> int:
        return len(self.fragments)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add a diagnostic entry."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the extraction."""
        return {
            "status": self.status.name,
            "parent_name": self.parent_name,
            "child_name": self.child_name,
            "spans_considered": self.spans_considered,
            "spans_matched": self.spans_matched,
            "unterminated_span": self.unterminated_span,
            "tokens_processed": self.performance.tokens_processed,
            "bytes_processed": self.performance.bytes_processed,
            "processing_time_ms": self.performance.processing_time_ms,
            "diagnostics_count": len(self.diagnostics),
        }


@dataclass
class ParseCursor:
    """Transient state of the token walk."""

    depth: int = 0
    capture_depth: Optional[int] = None
    matched: bool = False
    buffer: SpanBuffer = field(default_factory=SpanBuffer)
    # Local names of the elements open inside the current span, span root first
    open_elements: List[str] = field(default_factory=list)
    # Namespace declarations of every open element, document root first
    scopes: List[Dict[str, str]] = field(default_factory=list)
    outer_bindings: Dict[str, str] = field(default_factory=dict)
    # Bindings the span uses but that are declared on its ancestors
    inherited: Dict[str, str] = field(default_factory=dict)

    @property
    def inside_span(self) -> bool:
        return self.capture_depth is not None

    def open_span(self, token: Token) -> None:
        self.capture_depth = self.depth
        self.matched = False
        self.buffer.open(token)
        self.open_elements = [token.local_name]
        self.outer_bindings = {}
        for scope in self.scopes[:-1]:
            self.outer_bindings.update(scope)
        self.inherited = {}
        self.borrow_namespaces(token)

    def borrow_namespaces(self, token: Token) -> None:
        span_scopes = self.scopes[self.capture_depth - 1:]
        for prefix in used_prefixes(token):
            if prefix in self.inherited or any(prefix in scope for scope in span_scopes):
                continue
            uri = self.outer_bindings.get(prefix)
            if uri:
                self.inherited[prefix] = uri

    def fragment(self) -> str:
        """Markup of the current span, made self-contained for namespaces."""
        return self.buffer.getvalue([
            ("xmlns:" + prefix if prefix else "xmlns", uri)
            for prefix, uri in self.inherited.items()
        ])

    def close_span(self) -> None:
        self.capture_depth = None
        self.matched = False
        self.buffer.reset()
        self.open_elements = []
        self.outer_bindings = {}
        self.inherited = {}


class SelectiveExtractor:
    """Extracts parent elements whose span contains a reference value."""

    def __init__(
        self,
        config: ExtractionConfig,
        tokenizer_config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the extractor.

        Args:
            config: Parent/child element names and matching options
            tokenizer_config: Configuration handed to the tokenizer
            correlation_id: Optional correlation ID for run tracking

        Raises:
            ConfigValidationError: ``config.parent_name`` is empty
        """
        if not config.parent_name:
            raise ConfigValidationError(
                "parent_name is required", field_name="parent_name"
            )
        self.config = config
        self.correlation_id = correlation_id
        self.tokenizer = XMLTokenizer(tokenizer_config, correlation_id)
        self.logger = get_logger(__name__, correlation_id, "selective_extractor")

    def extract(
        self,
        xml_bytes: InputBytes,
        reference_set: AbstractSet[str],
        cancel_check: Optional[CancelCheck] = None
    ) -> ExtractionResult:
        """Extract matching parent elements from a complete XML document.

        Args:
            xml_bytes: Complete XML document
            reference_set: Trimmed, non-empty reference values
            cancel_check: Optional callable polled between tokens

        Returns:
            ExtractionResult; ``status`` is NO_MATCHES when nothing matched

        Raises:
            MalformedInputError: the document is not well-formed
            ExtractionCancelledError: ``cancel_check`` returned true
        """
        # str input is decoded as UTF-8 by the tokenizer whatever encoding it declares
        data = xml_bytes if isinstance(xml_bytes, str) else bytes(xml_bytes)
        process = psutil.Process()
        memory_start = process.memory_info().rss

        result = self.extract_tokens(
            self.tokenizer.iter_tokens(data), reference_set, cancel_check
        )

        result.performance.bytes_processed = (
            len(data.encode("utf-8")) if isinstance(data, str) else len(data)
        )
        result.performance.memory_used_bytes = max(
            process.memory_info().rss - memory_start, 0
        )
        return result

    def extract_tokens(
        self,
        tokens: Iterable[Token],
        reference_set: AbstractSet[str],
        cancel_check: Optional[CancelCheck] = None
    ) -> ExtractionResult:
        """Run the span walk over an already tokenized stream."""
        start_time = time.time()
        parent_name = self.config.parent_name
        child_name = self.config.child_name
        references = (
            reference_set if isinstance(reference_set, (set, frozenset))
            else frozenset(reference_set)
        )

        result = ExtractionResult(
            parent_name=parent_name,
            child_name=child_name,
            correlation_id=self.correlation_id,
        )
        cursor = ParseCursor()
        token_count = 0

        self.logger.info(
            "Starting extraction",
            extra={
                "parent_name": parent_name,
                "child_name": child_name,
                "reference_count": len(references),
            }
        )

        for token in tokens:
            if cancel_check is not None and cancel_check():
                self.logger.warning(
                    "Extraction cancelled", extra={"tokens_processed": token_count}
                )
                raise ExtractionCancelledError(token_count)
            token_count += 1

            if token.type is TokenType.START_ELEMENT:
                cursor.depth += 1
                cursor.scopes.append(namespace_declarations(token.attributes))
                if token.local_name == parent_name:
                    if cursor.inside_span:
                        self.logger.debug(
                            "Nested parent element restarts the span",
                            extra={"depth": cursor.depth, "capture_depth": cursor.capture_depth}
                        )
                    cursor.open_span(token)
                    result.spans_considered += 1
                    if not child_name:
                        cursor.matched = True
                elif cursor.inside_span:
                    cursor.buffer.append(token)
                    cursor.open_elements.append(token.local_name)
                    cursor.borrow_namespaces(token)

            elif token.type is TokenType.END_ELEMENT:
                if cursor.inside_span:
                    cursor.buffer.append(token)
                    if (token.local_name == parent_name
                            and cursor.depth == cursor.capture_depth):
                        if cursor.matched:
                            result.fragments.append(cursor.fragment())
                        cursor.close_span()
                    else:
                        cursor.open_elements.pop()
                cursor.scopes.pop()
                cursor.depth -= 1

            elif cursor.inside_span:
                cursor.buffer.append(token)
                if child_name and not cursor.matched:
                    cursor.matched = self._qualifies(token, cursor, references)

        if cursor.inside_span:
            result.unterminated_span = True
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Token stream ended inside an unterminated <{parent_name}> span; "
                "the span was discarded",
                "selective_extractor",
                details={"depth": cursor.depth, "capture_depth": cursor.capture_depth},
            )
            self.logger.warning(
                "Unterminated span discarded",
                extra={"parent_name": parent_name, "capture_depth": cursor.capture_depth}
            )

        result.performance.tokens_processed = token_count
        result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

        self.logger.info(
            "Extraction completed",
            extra={
                "spans_considered": result.spans_considered,
                "spans_matched": result.spans_matched,
                "processing_time_ms": result.performance.processing_time_ms,
            }
        )
        return result

    def _qualifies(
        self,
        token: Token,
        cursor: ParseCursor,
        references: AbstractSet[str]
    ) -> bool:
        if self.config.restrict_to_child and cursor.open_elements[-1] != self.config.child_name:
            return False
        return token.text.strip() in references
