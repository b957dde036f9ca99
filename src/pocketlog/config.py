"""Configuration loading for the PocketLog uploader.

Settings are read from a flat ``KEY=value`` file written by the installer
(``/etc/pocketlog/pocketlog.conf`` by default). A fresh, immutable
:class:`Settings` value is built on every run and handed to the scanner and
the upload coordinator; nothing is cached between runs.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/pocketlog/pocketlog.conf"
DEFAULT_PREFIX = "pocketlog"
DEFAULT_LOG_ROOT = "/var/log/pocketlog"
DEFAULT_MIN_AGE_SECONDS = 120

CONFIG_PATH_ENV = "POCKETLOG_CONFIG"

CONF_KEYS = {
    "bucket": "S3_BUCKET",
    "prefix": "S3_PREFIX",
    "log_root": "LOG_ROOT",
    "delete_after_upload": "DELETE_AFTER_UPLOAD",
    "min_age_seconds": "MIN_AGE_SEC",
    "aws_region": "AWS_REGION",
    "aws_profile": "AWS_PROFILE",
    "log_level": "LOG_LEVEL",
    "log_file": "UPLOADER_LOG_FILE",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})
_QUOTE_CHARS = "\"'"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class UploaderSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str = Field(default="", description="Destination S3 bucket; empty disables uploads")
    prefix: str = Field(default=DEFAULT_PREFIX)
    log_root: str = Field(default=DEFAULT_LOG_ROOT)
    delete_after_upload: bool = Field(default=True)
    min_age_seconds: int = Field(default=DEFAULT_MIN_AGE_SECONDS, ge=0)

    @field_validator("prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        return value.strip("/")


class AWSSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    region: str | None = Field(default=None)
    profile: str | None = Field(default=None)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    uploader: UploaderSettings = Field(default_factory=UploaderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTE_CHARS:
        return value[1:-1]
    return value


def parse_config_lines(lines: Iterable[str]) -> dict[str, str]:
    """Parse ``KEY=value`` lines into a mapping.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. Values
    lose surrounding whitespace and one matching pair of quotes. Later keys win.
    """
    values: dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        if not key:
            continue
        values[key] = _strip_quotes(value)
    return values


def read_config_file(path: str | Path) -> dict[str, str]:
    """Read a config file, falling back to an empty mapping when unreadable."""
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            return parse_config_lines(handle)
    except FileNotFoundError:
        _config_logger.warning("Config file %s not found, using defaults", config_path)
    except OSError as exc:
        _config_logger.warning("Failed to read config file %s: %s, using defaults", config_path, exc)
    return {}


def _conf_str(raw: Mapping[str, str], key: str, default: str | None) -> str | None:
    value = raw.get(key)
    if value is None:
        return default
    return value


def _conf_bool(raw: Mapping[str, str], key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized not in _FALSE_VALUES:
        _config_logger.warning(
            "Unrecognised boolean value for %s: %r, treating as false", key, value
        )
    return False


def _conf_int(raw: Mapping[str, str], key: str, default: int, minimum: int = 0) -> int:
    value = raw.get(key)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default
    if parsed < minimum:
        _config_logger.warning(
            "Value for %s must be >= %d, got %d, using default %d", key, minimum, parsed, default
        )
        return default
    return parsed


def _env_or_conf(raw: Mapping[str, str], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def build_settings(raw: Mapping[str, str]) -> Settings:
    """Turn a raw key/value mapping into validated settings.

    Every recognised key ends up with a value: the parsed one when present and
    well formed, otherwise its default. The AWS and logging keys may also come
    from the process environment when the file does not set them.
    """
    settings_data: dict[str, object] = {
        "uploader": {
            "bucket": (_conf_str(raw, CONF_KEYS["bucket"], "") or "").strip(),
            "prefix": _conf_str(raw, CONF_KEYS["prefix"], DEFAULT_PREFIX),
            "log_root": _conf_str(raw, CONF_KEYS["log_root"], DEFAULT_LOG_ROOT)
            or DEFAULT_LOG_ROOT,
            "delete_after_upload": _conf_bool(
                raw,
                CONF_KEYS["delete_after_upload"],
                UploaderSettings().delete_after_upload,
            ),
            "min_age_seconds": _conf_int(
                raw,
                CONF_KEYS["min_age_seconds"],
                DEFAULT_MIN_AGE_SECONDS,
            ),
        },
        "logging": {
            "level": _env_or_conf(raw, CONF_KEYS["log_level"]) or LoggingSettings().level,
            "file": _env_or_conf(raw, CONF_KEYS["log_file"]),
        },
        "aws": {
            "region": _env_or_conf(raw, CONF_KEYS["aws_region"])
            or os.getenv("AWS_DEFAULT_REGION"),
            "profile": _env_or_conf(raw, CONF_KEYS["aws_profile"]),
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings for one uploader run."""

    load_dotenv(dotenv_path=Path.cwd() / ".env")
    config_path = resolve_config_path(path)
    raw = read_config_file(config_path)
    _config_logger.debug("Loaded %d key(s) from %s", len(raw), config_path)
    return build_settings(raw)
