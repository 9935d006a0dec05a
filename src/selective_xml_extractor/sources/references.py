"""Reference identifier source.

Reference ids come from a comma-delimited text file: any number of ids per
line, surrounding whitespace ignored, blank cells and blank lines skipped.
"""

import csv
from pathlib import Path
from typing import FrozenSet, Iterable, Union

from selective_xml_extractor.shared import ReferenceSourceError, get_logger

ReferenceSet = FrozenSet[str]

logger = get_logger(__name__, component="reference_source")


def reference_set(values: Iterable[str]) -> ReferenceSet:
    """Build a reference set from raw values, trimming and dropping blanks."""
    return frozenset(
        stripped for stripped in (value.strip() for value in values) if stripped
    )


def read_reference_ids(
    path: Union[str, Path],
    encoding: str = "utf-8-sig"
) -> ReferenceSet:
    """Read every id from a comma-delimited file.

    Args:
        path: Path of the delimited text file
        encoding: File encoding; the default also drops a UTF-8 BOM

    Returns:
        Frozen set of trimmed, non-empty ids

    Raises:
        ReferenceSourceError: the file cannot be opened or parsed
    """
    path = Path(path)
    try:
        with path.open(newline="", encoding=encoding) as handle:
            ids = reference_set(cell for row in csv.reader(handle) for cell in row)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ReferenceSourceError(f"Cannot read reference ids from {path}: {e}") from e

    logger.info("Loaded reference ids", extra={"source": str(path), "count": len(ids)})
    return ids
