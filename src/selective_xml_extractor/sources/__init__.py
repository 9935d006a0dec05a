"""Input collaborators: reference id files and input document acquisition."""

from .acquisition import (
    download_file,
    downloaded,
    file_name_from_url,
    read_head,
    unpack,
)
from .references import (
    ReferenceSet,
    read_reference_ids,
    reference_set,
)

__all__ = [
    "ReferenceSet",
    "download_file",
    "downloaded",
    "file_name_from_url",
    "read_head",
    "read_reference_ids",
    "reference_set",
    "unpack",
]
