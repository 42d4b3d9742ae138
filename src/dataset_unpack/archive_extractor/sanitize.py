"""Mapping of stored entry paths to safe destinations on disk."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from dataset_unpack.common import normalize_path, split_path_segments

from .errors import UnsafeEntryPathError

logger = logging.getLogger(__name__)

# Windows invalid filename characters
WINDOWS_INVALID_CHARS = r'[<>:"|?*]'
WINDOWS_RESERVED_NAMES = {
    'CON', 'PRN', 'AUX', 'NUL',
    'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
    'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
}

_DRIVE_PREFIX = re.compile(r'^[A-Za-z]:')


@dataclass(frozen=True)
class SanitizedPath:
    """Safe destination computed for one archive entry."""
    stored_path: str
    relative_path: str  # Forward-slash path below the extraction root
    destination: Path
    is_directory: bool
    was_modified: bool


def sanitize_segment(segment: str) -> str:
    """Rewrite one path segment so Windows filesystems can store it.

    Args:
        segment: Single file or directory name

    Returns:
        The segment with invalid characters replaced, trailing dots and
        spaces removed and reserved device names prefixed with ``_``
    """
    segment = re.sub(WINDOWS_INVALID_CHARS, '_', segment)

    # Windows drops trailing dots and spaces
    segment = segment.rstrip('. ')
    if not segment:
        return '_'

    name_without_ext = segment.split('.')[0].upper()
    if name_without_ext in WINDOWS_RESERVED_NAMES:
        segment = f"_{segment}"

    return segment


def is_within_root(path: Path, root: Path) -> bool:
    """Check that ``path`` resolves to ``root`` or somewhere below it.

    Both paths are resolved, so symlinks already present on disk are
    followed before the comparison.
    """
    resolved_root = root.resolve()
    resolved = path.resolve()
    return resolved == resolved_root or resolved_root in resolved.parents


def sanitize_entry_path(
    stored_path: str,
    extraction_root: Path,
    strip_unsafe: bool = False,
    windows_safe_names: bool = False,
) -> SanitizedPath:
    """Compute the destination of an entry below the extraction root.

    Both ``/`` and ``\\`` separate segments. An entry is a directory when its
    stored path is empty or ends with a separator.

    Args:
        stored_path: Entry path as recorded in the archive (untrusted)
        extraction_root: Directory all output must stay inside
        strip_unsafe: Drop absolute prefixes and ``..`` segments instead of
            rejecting the entry
        windows_safe_names: Rewrite segments Windows cannot store

    Returns:
        SanitizedPath describing the destination

    Raises:
        UnsafeEntryPathError: If the path is absolute or climbs out of the
            root (and ``strip_unsafe`` is off), has no usable name, or
            resolves outside the root
    """
    # Separators only; on-disk names keep the code points the archive recorded
    normalized = normalize_path(stored_path, unicode_form=None)
    is_directory = normalized == '' or normalized.endswith('/')

    is_absolute = normalized.startswith('/') or bool(_DRIVE_PREFIX.match(normalized))
    segments = split_path_segments(_DRIVE_PREFIX.sub('', normalized, count=1))
    has_traversal = '..' in segments

    if is_absolute or has_traversal:
        reason = "absolute path" if is_absolute else "parent directory traversal"
        if not strip_unsafe:
            raise UnsafeEntryPathError(
                f"Unsafe entry path ({reason}): {stored_path!r}",
                entry=stored_path,
                reason=reason,
            )
        segments = [part for part in segments if part != '..']
        logger.warning(f"Stripped unsafe segments ({reason}) from entry {stored_path!r}")

    if windows_safe_names:
        segments = [sanitize_segment(part) for part in segments]

    if not segments and not is_directory:
        raise UnsafeEntryPathError(
            f"Entry path has no usable name: {stored_path!r}",
            entry=stored_path,
            reason="empty name",
        )

    relative_path = '/'.join(segments)
    destination = extraction_root.joinpath(*segments)

    if not is_within_root(destination, extraction_root):
        raise UnsafeEntryPathError(
            f"Entry {stored_path!r} resolves outside {extraction_root}",
            entry=stored_path,
            reason="resolves outside root",
            destination=str(destination),
        )

    expected = relative_path + ('/' if is_directory and relative_path else '')
    was_modified = expected != stored_path
    if was_modified:
        logger.debug(f"Sanitized entry path: '{stored_path}' -> '{relative_path}'")

    return SanitizedPath(
        stored_path=stored_path,
        relative_path=relative_path,
        destination=destination,
        is_directory=is_directory,
        was_modified=was_modified,
    )
