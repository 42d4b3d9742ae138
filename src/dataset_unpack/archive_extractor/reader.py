"""Sequential entry reader over ZIP archives.

Wraps :mod:`zipfile` in a cursor-style API: the reader is positioned on one
entry at a time, the current entry can be opened and read in chunks, and
the cursor only moves forward. Errors raised by :mod:`zipfile` are
translated into the typed errors from :mod:`.errors`.
"""

import logging
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional, Union

from .errors import (
    ArchiveOpenError,
    BadPasswordError,
    CorruptedEntryError,
    EntryMetadataError,
    StreamReadError,
)

logger = logging.getLogger(__name__)

# General purpose bit flag: entry is encrypted
_FLAG_ENCRYPTED = 0x1


@dataclass(frozen=True)
class EntryMetadata:
    """Metadata of the entry under the reader's cursor.

    Only meaningful while the cursor stays on that entry.
    """
    index: int
    stored_path: str  # Path exactly as recorded in the archive
    compressed_size: int
    file_size: int  # Uncompressed size in bytes
    crc32: int  # CRC32 of the uncompressed content
    is_encrypted: bool


class ZipArchiveReader:
    """Forward-only cursor over the entries of a ZIP archive."""

    def __init__(self, archive_path: Union[str, Path]):
        """Open an archive.

        Args:
            archive_path: Path to the ZIP file

        Raises:
            ArchiveOpenError: If the file is missing, unreadable or not a ZIP archive
        """
        self.path = Path(archive_path)
        try:
            self._zip = zipfile.ZipFile(self.path, 'r')
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveOpenError(
                f"Cannot open archive {self.path}: {e}",
                path=str(self.path),
                cause=type(e).__name__,
            ) from e

        self._infos: List[zipfile.ZipInfo] = self._zip.infolist()
        self._index = 0
        self._stream: Optional[IO[bytes]] = None
        self._closed = False

        logger.debug(f"Opened archive {self.path} ({len(self._infos)} entries)")

    def __enter__(self) -> "ZipArchiveReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def entry_count(self) -> int:
        """Number of entries recorded in the central directory."""
        return len(self._infos)

    @property
    def index(self) -> int:
        """Zero-based position of the cursor."""
        return self._index

    def _current_info(self) -> zipfile.ZipInfo:
        if self._closed:
            raise EntryMetadataError(
                f"Archive {self.path} is closed", path=str(self.path)
            )
        if not 0 <= self._index < len(self._infos):
            raise EntryMetadataError(
                f"No entry at position {self._index} in {self.path}",
                path=str(self.path),
                index=self._index,
            )
        return self._infos[self._index]

    def current_entry(self) -> EntryMetadata:
        """Return metadata of the entry under the cursor.

        Raises:
            EntryMetadataError: If the cursor is not positioned on an entry
        """
        info = self._current_info()
        return EntryMetadata(
            index=self._index,
            stored_path=info.filename,
            compressed_size=info.compress_size,
            file_size=info.file_size,
            crc32=info.CRC,
            is_encrypted=bool(info.flag_bits & _FLAG_ENCRYPTED),
        )

    def open_current(self, password: Optional[Union[str, bytes]] = None) -> None:
        """Open the current entry for reading.

        Args:
            password: Password for encrypted entries, ignored otherwise

        Raises:
            BadPasswordError: Entry is encrypted and the password is missing or wrong
            CorruptedEntryError: Local header is damaged or compression is unsupported
        """
        info = self._current_info()
        self.close_current()

        pwd = password.encode('utf-8') if isinstance(password, str) else password
        try:
            self._stream = self._zip.open(info, 'r', pwd=pwd or None)
        except RuntimeError as e:
            # zipfile signals both "password required" and "bad password" this way
            if 'password' in str(e).lower():
                raise BadPasswordError(
                    f"Cannot decrypt {info.filename}: {e}",
                    path=str(self.path),
                    entry=info.filename,
                ) from e
            raise StreamReadError(
                f"Cannot open entry {info.filename}: {e}",
                path=str(self.path),
                entry=info.filename,
            ) from e
        except (zipfile.BadZipFile, NotImplementedError, EOFError, zlib.error) as e:
            raise CorruptedEntryError(
                f"Cannot open entry {info.filename}: {e}",
                path=str(self.path),
                entry=info.filename,
            ) from e
        except OSError as e:
            raise StreamReadError(
                f"I/O error opening entry {info.filename}: {e}",
                path=str(self.path),
                entry=info.filename,
            ) from e

    def read(self, size: int) -> bytes:
        """Read up to ``size`` decompressed bytes from the current entry.

        Returns:
            The next chunk, or ``b""`` at the end of the entry

        Raises:
            CorruptedEntryError: Decompression failed, the stream is truncated
                or the CRC does not match
            StreamReadError: The entry is not open or the archive file failed
        """
        if self._stream is None:
            raise StreamReadError(
                f"Entry {self._index} of {self.path} is not open",
                path=str(self.path),
                index=self._index,
            )

        entry = self._infos[self._index]
        try:
            return self._stream.read(size)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise CorruptedEntryError(
                f"Corrupted data in {entry.filename}: {e}",
                path=str(self.path),
                entry=entry.filename,
                encrypted=bool(entry.flag_bits & _FLAG_ENCRYPTED),
            ) from e
        except OSError as e:
            raise StreamReadError(
                f"I/O error reading {entry.filename}: {e}",
                path=str(self.path),
                entry=entry.filename,
            ) from e

    def close_current(self) -> None:
        """Close the current entry stream if one is open."""
        if self._stream is not None:
            stream, self._stream = self._stream, None
            try:
                stream.close()
            except (OSError, zipfile.BadZipFile) as e:
                logger.warning(f"Error closing entry {self._index} of {self.path}: {e}")

    def next(self) -> bool:
        """Advance the cursor to the next entry.

        Returns:
            False if the cursor was already on the last entry
        """
        self.close_current()
        if self._index + 1 >= len(self._infos):
            return False
        self._index += 1
        return True

    def close(self) -> None:
        """Release the archive. Safe to call more than once."""
        if self._closed:
            return
        self.close_current()
        self._zip.close()
        self._closed = True
        logger.debug(f"Closed archive {self.path}")
