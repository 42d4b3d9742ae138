"""Path utilities for consistent path handling across packages."""

import unicodedata
from pathlib import Path
from typing import Optional


def normalize_path(path: Path | str, unicode_form: Optional[str] = 'NFC') -> str:
    """
    Normalize a path for consistent comparison across all packages.

    Applies:
    - Forward slash conversion, so both ``/`` and ``\\`` act as separators
    - Unicode normalization (NFC by default) unless ``unicode_form`` is None

    Archive writers disagree on separators: ZIP files produced on Windows
    frequently record ``dir\\file.txt``. Names that end up on disk must keep
    the exact code points the archive recorded, so the entry sanitizer
    passes ``unicode_form=None``; NFC is for comparing paths only.

    Args:
        path: Path object or string to normalize
        unicode_form: ``unicodedata`` form to apply, or None to keep code points

    Returns:
        Normalized path string with forward slashes

    Examples:
        >>> normalize_path("data\\\\train\\\\0001.png")
        'data/train/0001.png'
        >>> normalize_path("cafe\\u0301.txt", unicode_form=None)
        'cafe\\u0301.txt'
    """
    normalized = str(path)

    if unicode_form is not None:
        normalized = unicodedata.normalize(unicode_form, normalized)

    return normalized.replace('\\', '/')


def split_path_segments(path: str) -> list[str]:
    """Split a normalized path into its non-empty segments.

    ``.`` segments are dropped, ``..`` segments are kept so callers can
    decide how to treat them.
    """
    return [part for part in path.split('/') if part not in ('', '.')]
