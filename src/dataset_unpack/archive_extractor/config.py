"""Configuration schema for the archive extractor."""

from typing import Literal

from pydantic import BaseModel, Field, ConfigDict, field_validator

from dataset_unpack.common import LoggingConfig

DEFAULT_BUFFER_SIZE = 8192


class ExtractionConfig(BaseModel):
    """Configuration for archive extraction."""

    model_config = ConfigDict(extra='forbid')

    buffer_size: int = Field(
        default=DEFAULT_BUFFER_SIZE,
        ge=512,
        description="Chunk size in bytes used when streaming entries to disk"
    )
    archive_suffix: str = Field(
        default=".zip",
        description="Suffix appended to the archive path when the first open fails"
    )
    unsafe_path_policy: Literal["abort", "skip", "strip"] = Field(
        default="abort",
        description=(
            "What to do with entries whose stored path escapes the extraction root: "
            "abort the archive, skip the entry, or strip the unsafe segments"
        )
    )
    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary sibling and rename on success"
    )
    verify_checksums: bool = Field(
        default=False,
        description="Recompute CRC32 of each written file and compare with the archive"
    )
    windows_safe_names: bool = Field(
        default=False,
        description="Rewrite entry names that Windows filesystems cannot store"
    )
    progress_byte_interval: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Bytes written between incremental progress updates"
    )
    default_target_dir: str = Field(
        default="${USER_DATA}/datasets",
        description="Extraction directory used by the CLI when none is given"
    )

    @field_validator('unsafe_path_policy', mode='before')
    @classmethod
    def normalize_policy(cls, v: str) -> str:
        """Normalize policy to lowercase for case-insensitive input."""
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator('archive_suffix')
    @classmethod
    def require_suffix_dot(cls, v: str) -> str:
        """Archive suffix must look like a file extension."""
        if not v.startswith('.') or len(v) < 2:
            raise ValueError(f"archive_suffix must start with '.', got {v!r}")
        return v


class UnpackConfig(BaseModel):
    """Root configuration for dataset-unpack."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
