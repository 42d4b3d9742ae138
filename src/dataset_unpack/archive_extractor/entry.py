"""Streaming of a single archive entry to disk."""

import hashlib
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional, Union

from dataset_unpack.common import compute_crc32, format_crc32

from .config import DEFAULT_BUFFER_SIZE
from .directories import ensure_directory
from .errors import ArchiveError, CorruptedEntryError, FileOpenError, StreamWriteError
from .progress import ExtractionProgress
from .reader import EntryMetadata, ZipArchiveReader

logger = logging.getLogger(__name__)


# NAME_MAX on common filesystems
MAX_NAME_BYTES = 255


def partial_path(destination: Path) -> Path:
    """Temporary sibling a file is written to before it is renamed into place.

    Normally ``.<name>.part``. Names too long to take the extra characters
    use a short digest of the name instead.
    """
    name = f".{destination.name}.part"
    if len(os.fsencode(name)) <= MAX_NAME_BYTES:
        return destination.with_name(name)
    digest = hashlib.sha1(os.fsencode(destination.name)).hexdigest()[:16]
    return destination.with_name(f".{digest}.part")


def _open_for_write(path: Path, extraction_root: Path) -> BinaryIO:
    """Open ``path`` for binary writing, creating a missing parent directory once.

    Archives do not always list a directory entry before the files it contains.
    """
    try:
        return open(path, 'wb')
    except FileNotFoundError:
        logger.debug(f"Parent directory of {path} is missing, creating it")
    except OSError as e:
        raise FileOpenError(
            f"Error opening {path}: {e}", path=str(path), errno=e.errno
        ) from e

    ensure_directory(path.parent, extraction_root)

    try:
        return open(path, 'wb')
    except OSError as e:
        raise FileOpenError(
            f"Error opening {path}: {e}", path=str(path), errno=e.errno
        ) from e


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial file {path}: {e}")


def extract_entry(
    reader: ZipArchiveReader,
    entry: EntryMetadata,
    destination: Path,
    extraction_root: Path,
    password: Optional[Union[str, bytes]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    atomic: bool = True,
    verify_checksum: bool = False,
    progress: Optional[ExtractionProgress] = None,
) -> int:
    """Stream the reader's current entry into ``destination``.

    The entry stream is opened before the output file, so an entry that
    cannot be decrypted leaves nothing behind. An existing file at
    ``destination`` is overwritten.

    Args:
        reader: Reader positioned on the entry
        entry: Metadata of that entry
        destination: File to create (already sanitized)
        extraction_root: Bound for directories created on demand
        password: Password for encrypted entries
        buffer_size: Chunk size for the read/write loop
        atomic: Write to a temporary sibling and rename it over
            ``destination`` on success; the sibling is removed on failure.
            Without it a failed entry leaves a partial file.
        verify_checksum: Recompute the CRC32 of the written data and compare
            it with the archive's record
        progress: Receives byte counts as chunks are written

    Returns:
        Number of bytes written

    Raises:
        StreamReadError: Decryption or decompression failed
        DirectoryCreationError: The missing parent could not be created
        FileOpenError: The output file could not be created
        StreamWriteError: Writing or closing the output failed
    """
    reader.open_current(password)
    try:
        write_path = partial_path(destination) if atomic else destination
        output = _open_for_write(write_path, extraction_root)

        logger.debug(f"Extracting: {entry.stored_path} -> {destination}")

        bytes_written = 0
        try:
            try:
                with output:
                    while True:
                        chunk = reader.read(buffer_size)
                        if not chunk:
                            break
                        written = output.write(chunk)
                        if written != len(chunk):
                            raise StreamWriteError(
                                f"Short write to {write_path}: {written} of {len(chunk)} bytes",
                                path=str(write_path),
                                entry=entry.stored_path,
                            )
                        bytes_written += written
                        if progress is not None:
                            progress.advance_bytes(written)
            except OSError as e:
                raise StreamWriteError(
                    f"Error writing extracted file {write_path}: {e}",
                    path=str(write_path),
                    entry=entry.stored_path,
                    errno=e.errno,
                ) from e

            if verify_checksum:
                try:
                    actual_crc32 = compute_crc32(write_path)
                except OSError as e:
                    raise StreamWriteError(
                        f"Cannot re-read {write_path} for verification: {e}",
                        path=str(write_path),
                        entry=entry.stored_path,
                    ) from e
                if actual_crc32 != entry.crc32:
                    raise CorruptedEntryError(
                        f"CRC32 mismatch for {entry.stored_path}: "
                        f"expected {format_crc32(entry.crc32)}, got {format_crc32(actual_crc32)}",
                        path=str(write_path),
                        entry=entry.stored_path,
                    )

            if atomic:
                try:
                    os.replace(write_path, destination)
                except OSError as e:
                    raise FileOpenError(
                        f"Cannot move {write_path} to {destination}: {e}",
                        path=str(destination),
                        errno=e.errno,
                    ) from e
        except ArchiveError:
            if atomic:
                _discard(write_path)
            raise
    finally:
        reader.close_current()

    return bytes_written
