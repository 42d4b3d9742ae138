"""Shared logging configuration."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """The ``[logging]`` section; arguments for :func:`setup_logging`."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum severity written to the console and log file"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console format; the log file is always JSON"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path; may use ${USER_LOGS} and the other path variables"
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        description="Log file size that triggers rotation"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Rotated log files to keep"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept ``debug``, ``Info`` and so on."""
        return v.upper() if isinstance(v, str) else v

    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Accept ``JSON``, ``Simple`` and so on."""
        return v.lower() if isinstance(v, str) else v

    @field_validator('file', mode='before')
    @classmethod
    def empty_file_means_none(cls, v: Optional[str]) -> Optional[str]:
        """An empty string (e.g. from an environment variable) disables the file."""
        if isinstance(v, str) and not v.strip():
            return None
        return v
