"""CLI command for extracting dataset archives."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dataset_unpack.common import (
    ConfigLoader,
    ConfigurationError,
    LogContext,
    expand_path_variables,
    setup_logging,
)

from .config import UnpackConfig
from .dispatch import extract_archive

APP_NAME = "dataset-unpack"


def extract_command(
    config: UnpackConfig,
    archive: Path,
    target_dir_override: Optional[Path] = None,
    password: Optional[str] = None,
    report_progress: bool = False,
) -> int:
    """Extract one archive.

    Args:
        config: Configuration object
        archive: Archive to extract
        target_dir_override: Optional override for the extraction directory
        password: Password for encrypted entries
        report_progress: Log progress while extracting

    Returns:
        Exit code (0 for success)
    """
    logger = logging.getLogger(__package__ or __name__)

    if target_dir_override is not None:
        target_dir = target_dir_override
        if not target_dir.is_dir():
            logger.error(f"Target directory does not exist: {target_dir}")
            return 1
    else:
        target_dir = Path(expand_path_variables(config.extraction.default_target_dir))
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create target directory {target_dir}: {e}")
            return 1

    logger.info(f"Archive: {archive}")
    logger.info(f"Target directory: {target_dir}")

    with LogContext(logger, archive=str(archive)):
        success = extract_archive(
            archive,
            target_dir,
            password=password,
            report_progress=report_progress,
            config=config.extraction,
        )

    if success:
        logger.info(f"Successfully extracted: {archive} -> {target_dir}")
        return 0

    logger.error(f"Failed to extract: {archive}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Extract a dataset archive into a directory"
    )
    parser.add_argument(
        "archive",
        type=Path,
        help="Archive to extract (the .zip suffix may be omitted)"
    )
    parser.add_argument(
        "--target-dir",
        type=Path,
        required=False,
        help="Existing directory to extract into (overrides config)"
    )
    parser.add_argument(
        "--password",
        help="Password for encrypted entries"
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Log progress while extracting"
    )
    parser.add_argument(
        "--unsafe-paths",
        choices=["abort", "skip", "strip"],
        help="How to handle entries whose path escapes the target (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for extract command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=UnpackConfig)
    try:
        config = loader.load(defaults_path=args.config)
    except ConfigurationError as e:
        print(f"ERROR    | {APP_NAME} | {e.message}", file=sys.stderr)
        return 1

    if args.unsafe_paths:
        config.extraction = config.extraction.model_copy(
            update={"unsafe_path_policy": args.unsafe_paths}
        )

    log_file = Path(expand_path_variables(config.logging.file)) if config.logging.file else None
    setup_logging(
        level=config.logging.level,
        format=config.logging.format,
        log_file=log_file,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    return extract_command(
        config=config,
        archive=args.archive,
        target_dir_override=args.target_dir,
        password=args.password,
        report_progress=args.progress,
    )


if __name__ == "__main__":
    sys.exit(main())
