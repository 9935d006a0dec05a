"""Acquisition of input documents: HTTP download and archive unpacking.

Downloads are streamed to disk with ``requests``. Depending on the file
suffix the download is then unpacked:

* ``.zip`` -> every member is extracted, the first regular file is the input
* ``.gz`` -> decompressed to the same name without the suffix
* ``.tar.gz`` / ``.tgz`` -> every regular file is extracted, the first is the input

The archive itself is removed after a successful unpack. Members whose path
would land outside the destination directory abort the unpack.
"""

import gzip
import shutil
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Union
from urllib.parse import unquote, urlparse

import requests

from selective_xml_extractor.shared import AcquisitionError, DownloadConfig, get_logger

DEFAULT_DOWNLOAD_NAME = "download.xml"

logger = get_logger(__name__, component="acquisition")


def file_name_from_url(url: str) -> str:
    """Base name of the URL path, or a default when the path has none."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    return name or DEFAULT_DOWNLOAD_NAME


def download_file(
    url: str,
    dest_dir: Union[str, Path],
    config: Optional[DownloadConfig] = None
) -> Path:
    """Download ``url`` into ``dest_dir`` and unpack it if it is an archive.

    Returns:
        Path of the XML input file

    Raises:
        AcquisitionError: the request failed, returned a non-2xx status, or
            the archive could not be unpacked
    """
    config = config or DownloadConfig()
    dest_dir = Path(dest_dir)
    target = dest_dir / file_name_from_url(url)

    logger.info("Downloading input", extra={"url": url, "target": str(target)})
    try:
        with requests.get(
            url,
            stream=True,
            timeout=config.timeout_seconds,
            headers={"User-Agent": config.user_agent},
        ) as response:
            response.raise_for_status()
            with target.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=config.chunk_size):
                    handle.write(chunk)
    except requests.RequestException as e:
        raise AcquisitionError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise AcquisitionError(f"Failed to save {url} to {target}: {e}") from e

    return unpack(target)


def unpack(path: Path) -> Path:
    """Unpack ``path`` if its suffix names an archive; return the input file."""
    name = path.name.lower()
    try:
        if name.endswith(".zip"):
            extracted = _unzip(path, path.parent)
        elif name.endswith((".tar.gz", ".tgz")):
            extracted = _untar_gz(path, path.parent)
        elif name.endswith(".gz"):
            extracted = [_gunzip(path, path.with_suffix(""))]
        else:
            return path
    except (OSError, EOFError, zipfile.BadZipFile, tarfile.TarError) as e:
        raise AcquisitionError(f"Failed to unpack {path}: {e}") from e

    if not extracted:
        raise AcquisitionError(f"Archive {path} contains no files")

    path.unlink()
    logger.info(
        "Unpacked archive",
        extra={"archive": str(path), "files": len(extracted), "input": str(extracted[0])}
    )
    return extracted[0]


def _safe_member_path(dest: Path, member_name: str) -> Path:
    dest = dest.resolve()
    target = (dest / member_name).resolve()
    if target != dest and dest not in target.parents:
        raise AcquisitionError(f"Illegal file path in archive: {member_name}")
    return target


def _unzip(src: Path, dest: Path) -> List[Path]:
    extracted = []
    with zipfile.ZipFile(src) as archive:
        for info in archive.infolist():
            target = _safe_member_path(dest, info.filename)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as source, target.open("wb") as out:
                shutil.copyfileobj(source, out)
            extracted.append(target)
    return extracted


def _gunzip(src: Path, dest: Path) -> Path:
    with gzip.open(src, "rb") as source, dest.open("wb") as out:
        shutil.copyfileobj(source, out)
    return dest


def _untar_gz(src: Path, dest: Path) -> List[Path]:
    extracted = []
    with tarfile.open(src, "r:gz") as archive:
        for member in archive:
            target = _safe_member_path(dest, member.name)
            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.isfile():
                target.parent.mkdir(parents=True, exist_ok=True)
                source = archive.extractfile(member)
                with source, target.open("wb") as out:
                    shutil.copyfileobj(source, out)
                extracted.append(target)
    return extracted


@contextmanager
def downloaded(url: str, config: Optional[DownloadConfig] = None) -> Iterator[Path]:
    """Download ``url`` into a private temporary directory for the block's duration."""
    config = config or DownloadConfig()
    workdir = Path(tempfile.mkdtemp(prefix="ds-xml-", dir=config.temp_dir))
    try:
        yield download_file(url, workdir, config)
    finally:
        shutil.rmtree(workdir, ignore_errors=True)


def read_head(path: Union[str, Path], length: int) -> str:
    """First ``length`` characters of a text file, for a quick look at its shape."""
    if length < 0:
        raise ValueError("length must be >= 0")
    with Path(path).open(encoding="utf-8", errors="replace") as handle:
        return handle.read(length)
