"""Progress reporting for archive extraction.

One update is emitted when an entry starts (before any decompression),
then further updates every ``byte_interval`` bytes written within that
entry. Updates go to a callback when one is given, otherwise to the log.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_BYTE_INTERVAL = 1024 * 1024


@dataclass(frozen=True)
class ProgressEvent:
    """Snapshot of extraction progress."""
    entry_index: int  # Zero-based index of the current entry
    entry_count: int
    entry_name: str
    bytes_written: int  # Bytes written for the current entry so far
    entry_size: int  # Uncompressed size recorded in the archive

    @property
    def percentage(self) -> float:
        """Share of entries started, in percent."""
        if self.entry_count <= 0:
            return 100.0
        return (self.entry_index + 1) / self.entry_count * 100


ProgressCallback = Callable[[ProgressEvent], None]


class ExtractionProgress:
    """Tracks progress of one extraction call."""

    def __init__(
        self,
        total_entries: int,
        callback: Optional[ProgressCallback] = None,
        byte_interval: int = DEFAULT_BYTE_INTERVAL,
    ):
        """Initialize progress tracker.

        Args:
            total_entries: Number of entries in the archive
            callback: Receives every update; updates are logged when omitted
            byte_interval: Bytes between incremental updates within an entry
        """
        self.total_entries = total_entries
        self.callback = callback
        self.byte_interval = byte_interval

        self.start_time = time.monotonic()
        self.total_bytes = 0

        self._entry_index = -1
        self._entry_name = ""
        self._entry_size = 0
        self._entry_bytes = 0
        self._next_report = byte_interval

    def start_entry(self, index: int, name: str, size: int) -> None:
        """Report that an entry is about to be processed."""
        self._entry_index = index
        self._entry_name = name
        self._entry_size = size
        self._entry_bytes = 0
        self._next_report = self.byte_interval
        self._emit()

    def advance_bytes(self, count: int) -> None:
        """Record ``count`` bytes written for the current entry."""
        self._entry_bytes += count
        self.total_bytes += count
        if self._entry_bytes >= self._next_report:
            # Skip intervals crossed by one large chunk
            while self._next_report <= self._entry_bytes:
                self._next_report += self.byte_interval
            self._emit()

    def _emit(self) -> None:
        event = ProgressEvent(
            entry_index=self._entry_index,
            entry_count=self.total_entries,
            entry_name=self._entry_name,
            bytes_written=self._entry_bytes,
            entry_size=self._entry_size,
        )
        if self.callback is not None:
            self.callback(event)
            return

        if event.bytes_written == 0:
            logger.info(
                f"Extracting {event.entry_index + 1}/{event.entry_count} "
                f"({event.percentage:.1f}%): {event.entry_name}"
            )
        else:
            logger.info(
                f"  {event.entry_name}: {_format_size(event.bytes_written)} "
                f"of {_format_size(event.entry_size)}"
            )

    def finish(self, entries_processed: int) -> None:
        """Log final summary."""
        elapsed = time.monotonic() - self.start_time
        rate = self.total_bytes / elapsed if elapsed > 0 else 0.0
        logger.info(
            f"Extraction complete: {entries_processed}/{self.total_entries} entries, "
            f"{_format_size(self.total_bytes)} in {_format_time(elapsed)} "
            f"({_format_size(int(rate))}/s)"
        )


def _format_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable size (e.g. "1.5 MB")."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _format_time(seconds: float) -> str:
    """Format seconds as human-readable time (e.g. "2h 15m 30s")."""
    if seconds <= 0:
        return "0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)
