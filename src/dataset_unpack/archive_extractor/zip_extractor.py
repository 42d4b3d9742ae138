"""Extraction of ZIP archives into a directory tree."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import ExtractionConfig
from .directories import ensure_directory
from .entry import extract_entry
from .errors import ArchiveError, ArchiveOpenError, DirectoryCreationError, UnsafeEntryPathError
from .progress import ExtractionProgress, ProgressCallback
from .reader import EntryMetadata, ZipArchiveReader
from .sanitize import sanitize_entry_path

logger = logging.getLogger(__name__)


@dataclass
class ExtractionOutcome:
    """Result of one extraction call."""
    success: bool
    archive_path: str
    extraction_root: str
    entries_total: int = 0
    entries_processed: int = 0
    entries_skipped: int = 0
    bytes_written: int = 0
    error: Optional[ArchiveError] = None

    def __bool__(self) -> bool:
        return self.success


class ZipExtractor:
    """Extracts ZIP archives entry by entry, stopping at the first hard error."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        """Initialize the extractor.

        Args:
            config: Extraction settings; defaults apply when omitted
        """
        self.config = config or ExtractionConfig()

    def extract(
        self,
        archive_path: Union[str, Path],
        extraction_root: Union[str, Path],
        password: Optional[Union[str, bytes]] = None,
        report_progress: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ExtractionOutcome:
        """Extract every entry of an archive below ``extraction_root``.

        Entries are processed in archive order. The first entry that fails
        aborts the whole archive; entries with unsafe paths follow
        ``config.unsafe_path_policy``. The archive is closed on every path
        out of this method.

        Args:
            archive_path: ZIP file; the configured suffix is appended if the
                path as given cannot be opened
            extraction_root: Existing directory to extract into
            password: Password for encrypted entries
            report_progress: Emit progress updates (logged unless
                ``progress_callback`` is given)
            progress_callback: Receives progress updates; the closing
                summary is logged whenever progress is tracked

        Returns:
            ExtractionOutcome; truthy on success
        """
        outcome = ExtractionOutcome(
            success=False,
            archive_path=str(archive_path),
            extraction_root=str(extraction_root),
        )

        root = Path(extraction_root)
        if not root.is_dir():
            outcome.error = DirectoryCreationError(
                f"Extraction directory does not exist: {root}", path=str(root)
            )
            logger.warning(f"Error extracting to {root}: directory does not exist")
            return outcome
        root = root.resolve()

        try:
            reader = self._open_reader(archive_path)
        except ArchiveOpenError as e:
            outcome.error = e
            logger.warning(f"Failed to open file {archive_path}: {e.message}")
            return outcome

        with reader:
            outcome.archive_path = str(reader.path)
            outcome.entries_total = reader.entry_count
            logger.info(
                f"Extracting {reader.path} ({reader.entry_count} entries) to {root}",
                extra={"extra_fields": {"archive": str(reader.path), "extraction_root": str(root)}},
            )

            progress = None
            if report_progress or progress_callback is not None:
                progress = ExtractionProgress(
                    reader.entry_count,
                    callback=progress_callback,
                    byte_interval=self.config.progress_byte_interval,
                )

            try:
                for _ in range(reader.entry_count):
                    entry = reader.current_entry()
                    if progress is not None:
                        progress.start_entry(entry.index, entry.stored_path, entry.file_size)

                    written = self._extract_current(reader, entry, root, password, progress)
                    if written is None:
                        outcome.entries_skipped += 1
                    else:
                        outcome.bytes_written += written
                    outcome.entries_processed += 1

                    if not reader.next():
                        break
            except ArchiveError as e:
                outcome.error = e
                logger.error(
                    f"Extraction of {reader.path} aborted after "
                    f"{outcome.entries_processed}/{outcome.entries_total} entries: {e.message}",
                    extra={"extra_fields": {"archive": str(reader.path), **e.context}},
                )
                return outcome

        if progress is not None:
            progress.finish(outcome.entries_processed)

        if outcome.entries_skipped:
            logger.warning(f"Skipped {outcome.entries_skipped} entries with unsafe paths")

        outcome.success = True
        logger.debug(f"Successfully extracted {outcome.archive_path}")
        return outcome

    def _open_reader(self, archive_path: Union[str, Path]) -> ZipArchiveReader:
        """Open the archive, retrying once with the archive suffix appended."""
        try:
            return ZipArchiveReader(archive_path)
        except ArchiveOpenError as first_error:
            candidate = Path(f"{archive_path}{self.config.archive_suffix}")
            logger.debug(f"Cannot open {archive_path} ({first_error.message}), trying {candidate}")
            try:
                return ZipArchiveReader(candidate)
            except ArchiveOpenError:
                raise first_error

    def _extract_current(
        self,
        reader: ZipArchiveReader,
        entry: EntryMetadata,
        root: Path,
        password: Optional[Union[str, bytes]],
        progress: Optional[ExtractionProgress],
    ) -> Optional[int]:
        """Extract the entry under the cursor.

        Returns:
            Bytes written (0 for directories), or None if the entry was skipped
        """
        policy = self.config.unsafe_path_policy
        try:
            target = sanitize_entry_path(
                entry.stored_path,
                root,
                strip_unsafe=policy == "strip",
                windows_safe_names=self.config.windows_safe_names,
            )
        except UnsafeEntryPathError as e:
            if policy != "skip":
                raise
            logger.error(f"Skipping entry {entry.index}: {e.message}")
            return None

        if target.was_modified and self.config.windows_safe_names:
            logger.info(f"Sanitized filename: '{entry.stored_path}' -> '{target.relative_path}'")

        if target.is_directory:
            logger.debug(f"Creating directory: {target.destination}")
            ensure_directory(target.destination, root)
            return 0

        return extract_entry(
            reader,
            entry,
            target.destination,
            root,
            password=password,
            buffer_size=self.config.buffer_size,
            atomic=self.config.atomic_writes,
            verify_checksum=self.config.verify_checksums,
            progress=progress,
        )


def extract_zip(
    archive_path: Union[str, Path],
    extraction_root: Union[str, Path],
    password: Optional[Union[str, bytes]] = None,
    report_progress: bool = False,
    config: Optional[ExtractionConfig] = None,
) -> bool:
    """Extract a ZIP archive into an existing directory.

    Args:
        archive_path: ZIP file, with or without its ``.zip`` suffix
        extraction_root: Directory to extract into
        password: Password for encrypted entries
        report_progress: Log progress while extracting
        config: Extraction settings

    Returns:
        True if every entry was extracted (or skipped by policy)
    """
    outcome = ZipExtractor(config).extract(
        archive_path,
        extraction_root,
        password=password,
        report_progress=report_progress,
    )
    return outcome.success
