"""Creation of directory hierarchies below the extraction root."""

import logging
from pathlib import Path

from .errors import DirectoryCreationError

logger = logging.getLogger(__name__)


def ensure_directory(path: Path, extraction_root: Path) -> Path:
    """Create every missing directory level from the extraction root down to ``path``.

    Levels that already exist are left alone, so calling this repeatedly
    for the same path is harmless. The extraction root itself must exist.

    Args:
        path: Directory to materialize; must be the root or below it
        extraction_root: Directory that bounds all created levels

    Returns:
        The directory path

    Raises:
        DirectoryCreationError: If ``path`` is outside the root, a level
            exists as something other than a directory, or creation fails
    """
    try:
        relative = path.relative_to(extraction_root)
    except ValueError as e:
        raise DirectoryCreationError(
            f"Directory {path} is outside extraction root {extraction_root}",
            path=str(path),
            extraction_root=str(extraction_root),
        ) from e

    current = extraction_root
    for part in relative.parts:
        current = current / part
        if current.is_dir():
            continue

        try:
            current.mkdir()
        except FileExistsError as e:
            # Lost a race with another creator, or a file is in the way
            if not current.is_dir():
                raise DirectoryCreationError(
                    f"Cannot create directory {current}: a file with that name exists",
                    path=str(current),
                ) from e
        except OSError as e:
            raise DirectoryCreationError(
                f"Cannot create directory {current}: {e}",
                path=str(current),
                errno=e.errno,
            ) from e
        else:
            logger.debug(f"Created directory: {current}")

    return path
