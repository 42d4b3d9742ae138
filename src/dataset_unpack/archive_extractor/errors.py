"""Extraction-specific errors."""

from dataset_unpack.common import DatasetUnpackError


class ArchiveError(DatasetUnpackError):
    """Archive processing failed."""
    pass


class ArchiveOpenError(ArchiveError):
    """Archive could not be opened (missing, unreadable or not a ZIP file)."""
    pass


class EntryMetadataError(ArchiveError):
    """Metadata of the current entry could not be retrieved."""
    pass


class UnsafeEntryPathError(ArchiveError):
    """Stored entry path would land outside the extraction root."""
    pass


class DirectoryCreationError(ArchiveError):
    """A directory level could not be created."""
    pass


class FileOpenError(ArchiveError):
    """Destination file could not be created."""
    pass


class StreamReadError(ArchiveError):
    """Reading decompressed entry data failed."""
    pass


class BadPasswordError(StreamReadError):
    """Entry is encrypted and the password is missing or wrong."""
    pass


class CorruptedEntryError(StreamReadError):
    """Entry data is corrupted, truncated or fails its checksum."""
    pass


class StreamWriteError(ArchiveError):
    """Writing extracted data to disk failed."""
    pass


class UnsupportedArchiveError(ArchiveError):
    """Archive format is not supported."""
    pass
