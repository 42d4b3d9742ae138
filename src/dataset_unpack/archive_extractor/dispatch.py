"""Selection of the extraction routine from an archive's file extension."""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .config import ExtractionConfig
from .errors import UnsupportedArchiveError
from .zip_extractor import extract_zip

logger = logging.getLogger(__name__)

ExtractFunction = Callable[..., bool]


class ArchiveKind(Enum):
    """Supported archive formats."""
    ZIP = "zip"


# Map file extensions to archive formats
EXTENSION_MAP: Dict[str, ArchiveKind] = {
    '.zip': ArchiveKind.ZIP,
}

EXTRACTORS: Dict[ArchiveKind, ExtractFunction] = {
    ArchiveKind.ZIP: extract_zip,
}


def archive_extension(filename: Union[str, Path]) -> str:
    """Return the lower-cased extension of ``filename`` (e.g. ``.zip``)."""
    return Path(filename).suffix.lower()


def detect_archive_kind(filename: Union[str, Path]) -> Optional[ArchiveKind]:
    """Detect archive format from file extension.

    Returns:
        Archive kind or None if not supported
    """
    return EXTENSION_MAP.get(archive_extension(filename))


def get_extractor(filename: Union[str, Path]) -> ExtractFunction:
    """Return the extraction function for ``filename``.

    Raises:
        UnsupportedArchiveError: If the extension is not supported
    """
    kind = detect_archive_kind(filename)
    if kind is None:
        raise UnsupportedArchiveError(
            f"Extraction failed: unknown file extension for {filename} "
            f"(format: {archive_extension(filename) or 'none'})",
            path=str(filename),
        )
    return EXTRACTORS[kind]


def extract_archive(
    filename: Union[str, Path],
    extract_dir: Union[str, Path],
    password: Optional[Union[str, bytes]] = None,
    report_progress: bool = False,
    config: Optional[ExtractionConfig] = None,
) -> bool:
    """Extract an archive using the routine matching its extension.

    Args:
        filename: Archive file; without a known extension the name with the
            configured archive suffix appended is used if that file exists
        extract_dir: Existing directory to extract into
        password: Password for encrypted entries
        report_progress: Log progress while extracting
        config: Extraction settings

    Returns:
        True on success, False on unknown format or extraction failure
    """
    if detect_archive_kind(filename) is None:
        # Mirrors the suffix retry the extractor applies when opening
        suffix = (config or ExtractionConfig()).archive_suffix
        candidate = Path(f"{filename}{suffix}")
        if detect_archive_kind(candidate) is not None and candidate.is_file():
            logger.debug(f"No archive extension on {filename}, using {candidate}")
            filename = candidate

    logger.debug(f"Format {archive_extension(filename) or 'none'} File {filename}")

    try:
        extractor = get_extractor(filename)
    except UnsupportedArchiveError as e:
        logger.error(e.message)
        return False

    success = extractor(
        filename,
        extract_dir,
        password=password,
        report_progress=report_progress,
        config=config,
    )
    if success:
        logger.debug(f"Successfully extracted {filename}.")
    return success
