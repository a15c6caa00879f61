"""
Extracts zip and gzipped-tar archives entry by entry.

Both extractors read their source sequentially, create parent directories on
demand and fsync every file before moving to the next entry, so a return from
either function means the whole archive is on stable storage.
"""

import gzip
import logging
import os
import stat
import tarfile
import zipfile
import zlib
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, List, Union

from ollama_runtime.exceptions import ExtractionError

log = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, BinaryIO]

COPY_BUFFER_SIZE = 1024 * 1024  # 1 MB

_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    zlib.error,
    EOFError,
    OSError,
)


def _resolve_inside(target_dir: Path, name: str) -> Path:
    """Maps an archive entry name to a path that must stay inside target_dir."""
    destination = (target_dir / name).resolve()
    if destination != target_dir and target_dir not in destination.parents:
        raise ExtractionError(f"Archive entry escapes the target directory: {name}")
    return destination


def _write_entry(source: BinaryIO, destination: Path, mode: int | None) -> int:
    """
    Copies one entry to disk and waits until it is durably written.
    Returns the number of bytes written.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(destination, "wb") as f:
        while chunk := source.read(COPY_BUFFER_SIZE):
            f.write(chunk)
            written += len(chunk)
        f.flush()
        os.fsync(f.fileno())
    if mode:
        os.chmod(destination, stat.S_IMODE(mode))
    return written


def _delete_source(source: ArchiveSource) -> None:
    if not isinstance(source, (str, os.PathLike)):
        return
    try:
        os.remove(source)
        log.debug(f"Deleted archive '{source}'")
    except OSError as e:
        log.warning(f"Could not delete archive '{source}': {e}")


def extract_zip(
    source: ArchiveSource, target_dir: Path, delete_source: bool = False
) -> List[Path]:
    """
    Extracts a zip archive into target_dir.

    Args:
        source: Path to the archive, or a seekable binary file object.
        target_dir: Directory to extract into; created if missing.
        delete_source: Remove the archive file after a successful extraction.

    Returns:
        The paths of all files written.

    Raises:
        ExtractionError: The archive is malformed or an entry could not be written.
    """
    target_dir = Path(target_dir).resolve()
    written: List[Path] = []
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(source) as archive:
            for info in archive.infolist():
                destination = _resolve_inside(target_dir, info.filename)
                if info.is_dir():
                    destination.mkdir(parents=True, exist_ok=True)
                    continue

                # Upper 16 bits carry the unix mode when the zip was made on unix
                mode = info.external_attr >> 16 if info.create_system == 3 else None
                with archive.open(info) as entry:
                    _write_entry(entry, destination, mode)
                written.append(destination)
    except ExtractionError:
        raise
    except _ARCHIVE_ERRORS as e:
        raise ExtractionError(f"Failed to extract zip archive: {e}") from e

    log.debug(f"Extracted {len(written)} files from zip into '{target_dir}'")
    if delete_source:
        _delete_source(source)
    return written


def extract_tgz(
    source: ArchiveSource, target_dir: Path, delete_source: bool = False
) -> List[Path]:
    """
    Extracts a gzip-compressed tar archive into target_dir.

    The source is read strictly front to back, so it may be a non-seekable
    stream such as an HTTP response body.

    Args:
        source: Path to the archive, or a readable binary file object.
        target_dir: Directory to extract into; created if missing.
        delete_source: Remove the archive file after a successful extraction.

    Returns:
        The paths of all regular files written.

    Raises:
        ExtractionError: The archive is malformed or an entry could not be written.
    """
    target_dir = Path(target_dir).resolve()
    written: List[Path] = []
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with ExitStack() as stack:
            if isinstance(source, (str, os.PathLike)):
                raw = stack.enter_context(open(source, "rb"))
            else:
                raw = source
            # GzipFile raises EOFError on a truncated stream; tarfile's own
            # "r|gz" decoder would stop quietly with short files instead.
            compressed = stack.enter_context(gzip.GzipFile(fileobj=raw, mode="rb"))
            archive = stack.enter_context(tarfile.open(fileobj=compressed, mode="r|"))

            for member in archive:
                try:
                    member = tarfile.data_filter(member, str(target_dir))
                except tarfile.FilterError as e:
                    raise ExtractionError(f"Unsafe archive entry: {e}") from e

                destination = _resolve_inside(target_dir, member.name)
                if member.isdir():
                    destination.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    entry = archive.extractfile(member)
                    size = _write_entry(entry, destination, member.mode)
                    if size != member.size:
                        raise ExtractionError(
                            f"Archive entry '{member.name}' is truncated "
                            f"({size} of {member.size} bytes)"
                        )
                    written.append(destination)
                elif member.issym() or member.islnk():
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    archive.extract(member, target_dir, filter="data")
                else:
                    log.debug(f"Skipping special archive entry '{member.name}'")
    except ExtractionError:
        raise
    except _ARCHIVE_ERRORS as e:
        raise ExtractionError(f"Failed to extract tar archive: {e}") from e

    log.debug(f"Extracted {len(written)} files from tgz into '{target_dir}'")
    if delete_source:
        _delete_source(source)
    return written
