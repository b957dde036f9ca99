"""Logging helpers for the PocketLog uploader."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from pocketlog.config import LoggingSettings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_logger = logging.getLogger(__name__)


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def configure_logging(settings: LoggingSettings, level_override: str | None = None) -> None:
    """Configure root logging to stderr and, when set, an append-only file."""
    level_name = level_override or settings.level
    level = getattr(logging, level_name.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_formatter())
    handlers.append(stream_handler)

    file_error: OSError | None = None
    if settings.file:
        try:
            Path(settings.file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.file)
            file_handler.setFormatter(_formatter())
            handlers.append(file_handler)
        except OSError as exc:
            file_error = exc

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # botocore is chatty at DEBUG; keep it at WARNING unless asked otherwise.
    sdk_level = logging.WARNING if level > logging.DEBUG else logging.NOTSET
    for name in ("boto3", "botocore"):
        logging.getLogger(name).setLevel(sdk_level)

    if file_error is not None:
        _logger.warning("Failed to open log file %s: %s", settings.file, file_error)
