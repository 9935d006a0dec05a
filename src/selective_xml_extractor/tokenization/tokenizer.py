"""Strict pull tokenizer over expat.

This module turns a complete XML byte sequence into a lazy stream of
element-open, element-close and text tokens. Unlike a recovering tokenizer it
never repairs anything: the first syntax error, mismatched tag or premature
end of input aborts the stream with :class:`MalformedInputError`.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Deque, Iterator, List, Optional, Tuple, Union
from xml.parsers import expat

from selective_xml_extractor.shared import (
    MalformedInputError,
    TokenizerConfig,
    get_logger,
)

InputBytes = Union[bytes, bytearray, memoryview, str]


class TokenType(Enum):
    """XML token types produced by the tokenizer."""

    START_ELEMENT = auto()   # <name attr="value">  (also the first half of <name/>)
    END_ELEMENT = auto()     # </name>              (also the second half of <name/>)
    TEXT = auto()            # Character data and CDATA content, entities resolved


@dataclass
class TokenPosition:
    """Position of a token in the source bytes."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def as_dict(self) -> dict:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Token:
    """A single XML token.

    ``name`` is the qualified name exactly as written in the source
    (``ns:job`` stays ``ns:job``); ``attributes`` keeps source order.
    """

    type: TokenType
    position: TokenPosition
    name: str = ""
    attributes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    text: str = ""

    @property
    def local_name(self) -> str:
        """Element name with any namespace prefix removed."""
        return self.name.rpartition(":")[2]


class XMLTokenizer:
    """Pull-based tokenizer that feeds expat block by block.

    Events collected by the expat callbacks are queued and handed out one at a
    time, so a consumer walking :meth:`iter_tokens` never sees more than one
    input block of look-ahead.
    """

    def __init__(
        self,
        config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tokenizer.

        Args:
            config: Tokenizer configuration (block size fed to expat)
            correlation_id: Optional correlation ID for run tracking
        """
        self.config = config or TokenizerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_tokenizer")

    def iter_tokens(self, data: InputBytes) -> Iterator[Token]:
        """Yield tokens of ``data`` in document order.

        Args:
            data: Complete XML document. ``str`` input is encoded as UTF-8
                and parsed as UTF-8 regardless of its encoding declaration;
                byte input is decoded as its declaration says.

        Yields:
            START_ELEMENT, END_ELEMENT and TEXT tokens

        Raises:
            MalformedInputError: the document is not well-formed
        """
        encoding = None
        if isinstance(data, str):
            data = data.encode("utf-8")
            encoding = "utf-8"
        elif not isinstance(data, bytes):
            data = bytes(data)

        session = _ExpatSession(encoding)
        block_size = self.config.buffer_size

        self.logger.debug(
            "Starting tokenization",
            extra={"input_bytes": len(data), "block_size": block_size}
        )

        for start in range(0, len(data), block_size):
            session.feed(data[start:start + block_size], final=False)
            yield from session.drain()

        session.feed(b"", final=True)
        yield from session.drain()

    def tokenize(self, data: InputBytes) -> List[Token]:
        """Return every token of ``data`` as a list."""
        return list(self.iter_tokens(data))


class _ExpatSession:
    """One expat parser plus the queue its callbacks fill."""

    def __init__(self, encoding: Optional[str] = None) -> None:
        self.queue: Deque[Token] = deque()
        self._text_parts: List[str] = []
        self._text_position: Optional[TokenPosition] = None

        # An explicit encoding overrides the document's declaration
        self.parser = expat.ParserCreate(encoding)
        self.parser.ordered_attributes = True
        self.parser.buffer_text = True
        self.parser.StartElementHandler = self._on_start
        self.parser.EndElementHandler = self._on_end
        self.parser.CharacterDataHandler = self._on_text
        # Comments and PIs are dropped but still separate the text around them
        self.parser.CommentHandler = self._on_skipped
        self.parser.ProcessingInstructionHandler = self._on_skipped

    def feed(self, block: bytes, final: bool) -> None:
        try:
            self.parser.Parse(block, final)
        except expat.ExpatError as e:
            raise MalformedInputError(
                f"XML tokenization cannot continue: {expat.ErrorString(e.code)}",
                line=e.lineno,
                column=e.offset + 1,
            ) from e
        if final:
            self._flush_text()

    def drain(self) -> Iterator[Token]:
        while self.queue:
            yield self.queue.popleft()

    def _position(self) -> TokenPosition:
        return TokenPosition(
            line=self.parser.CurrentLineNumber,
            column=self.parser.CurrentColumnNumber + 1,
            offset=max(self.parser.CurrentByteIndex, 0),
        )

    def _flush_text(self) -> None:
        # expat splits character data at entity references and block
        # boundaries; consumers see one TEXT token per run of text.
        if self._text_parts:
            self.queue.append(Token(
                type=TokenType.TEXT,
                position=self._text_position,
                text="".join(self._text_parts),
            ))
            self._text_parts = []
            self._text_position = None

    def _on_start(self, name: str, attributes: List[str]) -> None:
        self._flush_text()
        pairs = tuple(zip(attributes[0::2], attributes[1::2]))
        self.queue.append(Token(
            type=TokenType.START_ELEMENT,
            position=self._position(),
            name=name,
            attributes=pairs,
        ))

    def _on_end(self, name: str) -> None:
        self._flush_text()
        self.queue.append(Token(
            type=TokenType.END_ELEMENT,
            position=self._position(),
            name=name,
        ))

    def _on_skipped(self, *_: str) -> None:
        self._flush_text()

    def _on_text(self, text: str) -> None:
        if not self._text_parts:
            self._text_position = self._position()
        self._text_parts.append(text)
