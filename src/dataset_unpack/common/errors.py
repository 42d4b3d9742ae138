"""Base error definitions for dataset_unpack packages."""

from typing import Any, Dict


class DatasetUnpackError(Exception):
    """Base exception for all dataset_unpack errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(DatasetUnpackError):
    """Configuration is invalid or missing."""
    pass
