"""Command-line entrypoint for a single uploader run."""

from __future__ import annotations

import argparse
import logging
import sys

from pocketlog import __version__
from pocketlog.config import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH, LoggingSettings, load_settings
from pocketlog.errors import ConfigurationError
from pocketlog.logging_utils import configure_logging
from pocketlog.uploader import UploadCoordinator

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pocketlog-upload",
        description="Upload rotated hourly log files to S3 and delete the local copies.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to the settings file (default: ${CONFIG_PATH_ENV} or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL from the settings file",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Early handler so config warnings are formatted; replaced once settings load.
    configure_logging(LoggingSettings(), level_override=args.log_level)
    try:
        settings = load_settings(args.config)
    except RuntimeError as exc:
        _logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    configure_logging(settings.logging, level_override=args.log_level)

    _logger.info("PocketLog uploader v%s starting", __version__)
    try:
        coordinator = UploadCoordinator(settings)
    except ConfigurationError as exc:
        _logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    summary = coordinator.run()
    print(f"Uploaded {summary.uploaded} file(s).")
    return EXIT_OK


def run_entrypoint() -> None:
    sys.exit(main())
