"""Common utilities for dataset_unpack packages."""

from .config import ConfigLoader, expand_path_variables
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import DatasetUnpackError, ConfigurationError
from .path_utils import normalize_path, split_path_segments
from .checksums import compute_crc32, format_crc32

__all__ = [
    'ConfigLoader',
    'expand_path_variables',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'DatasetUnpackError',
    'ConfigurationError',
    'normalize_path',
    'split_path_segments',
    'compute_crc32',
    'format_crc32',
]
