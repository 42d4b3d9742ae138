"""Safe extraction of downloaded dataset archives."""

from .config import ExtractionConfig, UnpackConfig
from .dispatch import ArchiveKind, detect_archive_kind, extract_archive, get_extractor
from .errors import (
    ArchiveError, ArchiveOpenError, EntryMetadataError, UnsafeEntryPathError,
    DirectoryCreationError, FileOpenError, StreamReadError, BadPasswordError,
    CorruptedEntryError, StreamWriteError, UnsupportedArchiveError
)
from .progress import ExtractionProgress, ProgressEvent
from .reader import EntryMetadata, ZipArchiveReader
from .sanitize import SanitizedPath, sanitize_entry_path
from .directories import ensure_directory
from .entry import extract_entry
from .zip_extractor import ExtractionOutcome, ZipExtractor, extract_zip

__all__ = [
    'ExtractionConfig',
    'UnpackConfig',
    'ArchiveKind',
    'detect_archive_kind',
    'extract_archive',
    'get_extractor',
    'ArchiveError',
    'ArchiveOpenError',
    'EntryMetadataError',
    'UnsafeEntryPathError',
    'DirectoryCreationError',
    'FileOpenError',
    'StreamReadError',
    'BadPasswordError',
    'CorruptedEntryError',
    'StreamWriteError',
    'UnsupportedArchiveError',
    'ExtractionProgress',
    'ProgressEvent',
    'EntryMetadata',
    'ZipArchiveReader',
    'SanitizedPath',
    'sanitize_entry_path',
    'ensure_directory',
    'extract_entry',
    'ExtractionOutcome',
    'ZipExtractor',
    'extract_zip',
]
