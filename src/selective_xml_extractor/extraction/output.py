"""Chunking of extracted fragments and serialization into output documents.

Each output document is a standard declaration, a synthetic root element and
one fragment per line, in extraction order::

    <?xml version="1.0" encoding="UTF-8"?>
    <root>
    <job>...</job>
    </root>
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from selective_xml_extractor.shared import OutputConfig, get_logger

from .extractor import ExtractionResult

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
ALL_CHILDREN_LABEL = "all"

Fragments = Union[ExtractionResult, Sequence[str]]


def chunk_fragments(fragments: Sequence[str], chunk_size: int = 0) -> List[List[str]]:
    """Split fragments into ordered, contiguous, non-overlapping groups.

    Args:
        fragments: Serialized fragments in document order
        chunk_size: Maximum group size; ``<= 0`` puts everything in one group

    Returns:
        List of groups; empty when there are no fragments
    """
    total = len(fragments)
    if total == 0:
        return []
    if chunk_size <= 0 or chunk_size > total:
        chunk_size = total
    return [list(fragments[i:i + chunk_size]) for i in range(0, total, chunk_size)]


def render_document(fragments: Sequence[str], root_tag: str = "root") -> str:
    """Wrap fragments in a synthetic root element, one fragment per line."""
    lines = [XML_DECLARATION, f"<{root_tag}>\n"]
    lines.extend(f"{fragment}\n" for fragment in fragments)
    lines.append(f"</{root_tag}>\n")
    return "".join(lines)


def output_file_name(parent_name: str, child_name: str, index: int) -> str:
    """File name for the ``index``-th (1-based) output document."""
    if index < 1:
        raise ValueError("Output document index must be >= 1")
    return f"{parent_name}_{child_name or ALL_CHILDREN_LABEL}_part-{index}.xml"


class DocumentWriter:
    """Persists extracted fragments as one or more XML documents."""

    def __init__(
        self,
        config: Optional[OutputConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or OutputConfig()
        self.logger = get_logger(__name__, correlation_id, "document_writer")

    def plan(
        self,
        fragments: Fragments,
        parent_name: Optional[str] = None,
        child_name: Optional[str] = None
    ) -> List[Tuple[Path, List[str]]]:
        """Pair every chunk with the path it will be written to.

        Args:
            fragments: An ExtractionResult or a plain fragment sequence
            parent_name: Name used in file names; taken from the result if omitted
            child_name: Name used in file names; taken from the result if omitted

        Raises:
            ValueError: no parent name is available for file naming
        """
        if isinstance(fragments, ExtractionResult):
            parent_name = parent_name or fragments.parent_name
            child_name = fragments.child_name if child_name is None else child_name
            fragments = fragments.fragments
        if not parent_name:
            raise ValueError("parent_name is required to name output documents")

        output_dir = Path(self.config.output_dir)
        return [
            (output_dir / output_file_name(parent_name, child_name or "", index), group)
            for index, group in enumerate(
                chunk_fragments(fragments, self.config.chunk_size), start=1
            )
        ]

    def write_document(self, path: Path, fragments: Sequence[str]) -> Path:
        """Write a single output document, creating its directory if needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_document(fragments, self.config.root_tag), encoding="utf-8")
        self.logger.info(
            "Wrote output document",
            extra={"path": str(path), "fragments": len(fragments)}
        )
        return path

    def write(
        self,
        fragments: Fragments,
        parent_name: Optional[str] = None,
        child_name: Optional[str] = None
    ) -> List[Path]:
        """Write one document per chunk into the configured directory.

        Returns:
            Paths of the written documents in chunk order. Nothing is written,
            and no directory is created, when there are no fragments.

        Raises:
            ValueError: no parent name is available for file naming
            OSError: the directory or a document could not be written
        """
        plan = self.plan(fragments, parent_name, child_name)
        if not plan:
            self.logger.info("No fragments to write")
        return [self.write_document(path, group) for path, group in plan]
