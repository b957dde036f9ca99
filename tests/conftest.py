from __future__ import annotations

import os
from pathlib import Path

import pytest

from pocketlog.config import AWSSettings, Settings, UploaderSettings

_ENV_KEYS = (
    "POCKETLOG_CONFIG",
    "LOG_LEVEL",
    "UPLOADER_LOG_FILE",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_PROFILE",
)

# Fixed clock for scanner/uploader tests: 2025-10-28T14:30:00Z.
NOW = 1761661800.0


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def now() -> float:
    return NOW


@pytest.fixture
def log_root(tmp_path: Path) -> Path:
    root = tmp_path / "pocketlog"
    root.mkdir()
    return root


@pytest.fixture
def make_artifact(log_root: Path, now: float):
    def _make(
        name: str,
        age: float,
        content: bytes = b"\x1f\x8bfake-gzip",
        directory: Path | None = None,
    ) -> Path:
        path = (directory or log_root) / name
        path.write_bytes(content)
        mtime = now - age
        os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def make_settings(log_root: Path):
    def _make(
        bucket: str = "log-bucket",
        prefix: str = "pocketlog",
        delete_after_upload: bool = True,
        min_age_seconds: int = 120,
    ) -> Settings:
        return Settings(
            uploader=UploaderSettings(
                bucket=bucket,
                prefix=prefix,
                log_root=str(log_root),
                delete_after_upload=delete_after_upload,
                min_age_seconds=min_age_seconds,
            ),
            aws=AWSSettings(region="us-east-1"),
        )

    return _make
