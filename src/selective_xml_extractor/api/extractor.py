"""Module-level extraction entry points.

Progressive disclosure: :func:`extract` and :func:`extract_file` cover the
common case with plain arguments; :class:`~selective_xml_extractor.extraction.SelectiveExtractor`
together with :class:`~selective_xml_extractor.shared.ExtractorConfig` gives
full control.
"""

from pathlib import Path
from typing import AbstractSet, Optional, Union

from selective_xml_extractor.extraction import ExtractionResult, SelectiveExtractor
from selective_xml_extractor.extraction.extractor import CancelCheck
from selective_xml_extractor.shared import ExtractorConfig, get_logger
from selective_xml_extractor.tokenization.tokenizer import InputBytes


def extract(
    xml_bytes: InputBytes,
    reference_set: AbstractSet[str],
    parent_name: str,
    child_name: str = "",
    restrict_to_child: bool = False,
    cancel_check: Optional[CancelCheck] = None,
    correlation_id: Optional[str] = None
) -> ExtractionResult:
    """Extract every ``parent_name`` element whose span holds a reference value.

    Args:
        xml_bytes: Complete, well-formed XML document
        reference_set: Trimmed, non-empty reference values
        parent_name: Local name of the elements to extract
        child_name: When empty every ``parent_name`` element matches
        restrict_to_child: Only text directly inside ``child_name`` can match
        cancel_check: Optional callable polled between tokens
        correlation_id: Optional correlation ID for run tracking

    Returns:
        ExtractionResult whose ``status`` is NO_MATCHES when nothing matched

    Raises:
        MalformedInputError: the document is not well-formed
        ConfigValidationError: the element names are invalid

    Examples:
        >>> xml = b"<jobs><job><id>1</id></job><job><id>2</id></job></jobs>"
        >>> extract(xml, {"2"}, "job", "id").fragments
        ['<job><id>2</id></job>']
    """
    config = ExtractorConfig().override(
        extraction__parent_name=parent_name,
        extraction__child_name=child_name,
        extraction__restrict_to_child=restrict_to_child,
    )
    return SelectiveExtractor(
        config.extraction, config.tokenizer, correlation_id
    ).extract(xml_bytes, reference_set, cancel_check)


def extract_file(
    file_path: Union[str, Path],
    reference_set: AbstractSet[str],
    config: ExtractorConfig,
    cancel_check: Optional[CancelCheck] = None
) -> ExtractionResult:
    """Read a whole XML file into memory and extract from it.

    Raises:
        OSError: the file cannot be read
        MalformedInputError: the document is not well-formed
    """
    correlation_id = config.global_.correlation_id
    logger = get_logger(__name__, correlation_id, "extract_file")
    path = Path(file_path)
    logger.info("Reading input document", extra={"source": str(path)})

    xml_bytes = path.read_bytes()
    return SelectiveExtractor(
        config.extraction, config.tokenizer, correlation_id
    ).extract(xml_bytes, reference_set, cancel_check)
