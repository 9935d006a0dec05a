"""Re-serialization of span tokens through an XML writer."""

from io import StringIO
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from xml.sax.saxutils import XMLGenerator, escape

from selective_xml_extractor.tokenization import Token, TokenType

Attribute = Tuple[str, str]

# A literal carriage return would be normalized to a newline on re-parse
_TEXT_ENTITIES = {"\r": "&#13;"}
_RESERVED_PREFIXES = ("xml", "xmlns")


def namespace_declarations(attributes: Iterable[Attribute]) -> Dict[str, str]:
    """Map of prefix to namespace URI declared by ``xmlns`` attributes.

    The default namespace is keyed by the empty prefix.
    """
    declarations = {}
    for name, value in attributes:
        if name == "xmlns":
            declarations[""] = value
        elif name.startswith("xmlns:"):
            declarations[name[len("xmlns:"):]] = value
    return declarations


def used_prefixes(token: Token) -> List[str]:
    """Prefixes an element needs bound: its own (``""`` when unprefixed) and its attributes'."""
    prefixes = [token.name.rpartition(":")[0]]
    for name, _ in token.attributes:
        prefix = name.rpartition(":")[0]
        if prefix and prefix not in _RESERVED_PREFIXES and prefix not in prefixes:
            prefixes.append(prefix)
    return prefixes


def start_tag(token: Token, extra_attributes: Sequence[Attribute] = ()) -> str:
    """Serialize the open tag of ``token`` followed by ``extra_attributes``."""
    stream = StringIO()
    writer = XMLGenerator(stream, short_empty_elements=False)
    writer.startElement(token.name, dict(tuple(token.attributes) + tuple(extra_attributes)))
    return stream.getvalue()


class SpanBuffer:
    """Accumulates the markup of one capture span.

    Tokens go through :class:`~xml.sax.saxutils.XMLGenerator` rather than a
    string template so that names, attribute order and text survive while
    ``&``, ``<`` and quotes are escaped by the writer. Empty elements are
    written as an explicit open/close pair.

    The open tag of the span root is held back until :meth:`getvalue` so that
    namespace declarations inherited from outside the span can be added to it.
    """

    def __init__(self) -> None:
        self._root: Optional[Token] = None
        self._stream = StringIO()
        self._writer = XMLGenerator(self._stream, short_empty_elements=False)

    def open(self, token: Token) -> None:
        """Start a new span rooted at ``token``."""
        self.reset()
        self._root = token

    def append(self, token: Token) -> None:
        if token.type is TokenType.START_ELEMENT:
            self._writer.startElement(token.name, dict(token.attributes))
        elif token.type is TokenType.END_ELEMENT:
            self._writer.endElement(token.name)
        else:
            # ignorableWhitespace writes its argument unescaped
            self._writer.ignorableWhitespace(escape(token.text, _TEXT_ENTITIES))

    def getvalue(self, extra_attributes: Sequence[Attribute] = ()) -> str:
        body = self._stream.getvalue()
        if self._root is None:
            return body
        return start_tag(self._root, extra_attributes) + body

    def reset(self) -> None:
        self._root = None
        self._stream.seek(0)
        self._stream.truncate()
