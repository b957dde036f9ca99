"""Discovery of rotated hourly log artifacts.

The rotator leaves one immutable ``YYYY-MM-DD-HH.log.gz`` file per finished
hour under the log root, next to the current hour's plain ``.log`` file that
is still being written. Only flat, exactly named, regular files that are old
enough to be done compressing are handed to the uploader.
"""

from __future__ import annotations

import logging
import os
import re
import stat
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

ARTIFACT_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(\d{2})\.log\.gz$")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogArtifact:
    """One fully rotated hour of logs on disk."""

    path: Path
    year: int
    month: int
    day: int
    hour: int
    mtime: float
    size: int

    @property
    def name(self) -> str:
        return self.path.name

    def age(self, now: float) -> float:
        return now - self.mtime


def is_artifact_name(name: str) -> bool:
    return ARTIFACT_PATTERN.match(name) is not None


def parse_artifact_name(name: str) -> datetime | None:
    """Return the hour embedded in an artifact filename.

    ``None`` when the name does not match the pattern or does not describe a
    real calendar hour (``2025-13-40-99.log.gz`` matches the pattern only).
    """
    match = ARTIFACT_PATTERN.match(name)
    if match is None:
        return None
    year, month, day, hour = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, hour)
    except ValueError:
        return None


def artifact_from_path(path: Path, stat_result: os.stat_result) -> LogArtifact | None:
    """Build a :class:`LogArtifact` for ``path``, or ``None`` if it is not one.

    The date comes from the filename. When the name matches the pattern but
    is not a valid hour, the modification time truncated to UTC is used
    instead.
    """
    if not is_artifact_name(path.name):
        return None
    if not stat.S_ISREG(stat_result.st_mode):
        return None

    stamp = parse_artifact_name(path.name)
    if stamp is None:
        stamp = datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)
        _logger.warning(
            "Artifact %s has an invalid embedded date, falling back to mtime %s",
            path,
            stamp.strftime("%Y-%m-%d %H:00"),
        )

    return LogArtifact(
        path=path.absolute(),
        year=stamp.year,
        month=stamp.month,
        day=stamp.day,
        hour=stamp.hour,
        mtime=stat_result.st_mtime,
        size=stat_result.st_size,
    )


def scan_artifacts(
    root: str | Path,
    min_age_seconds: int,
    now: float | None = None,
) -> Iterator[LogArtifact]:
    """Yield ready artifacts directly under ``root``.

    Subdirectories are not descended into. An artifact is ready once
    ``now - mtime >= min_age_seconds``. A missing root yields nothing.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        _logger.debug("Log root %s does not exist, nothing to scan", root_path)
        return

    if now is None:
        now = time.time()

    try:
        entries = sorted(root_path.iterdir())
    except OSError as exc:
        _logger.warning("Failed to list log root %s: %s, nothing to scan", root_path, exc)
        return

    for path in entries:
        if not is_artifact_name(path.name):
            continue
        try:
            stat_result = path.lstat()
        except FileNotFoundError:
            _logger.debug("Artifact %s disappeared before it could be inspected", path)
            continue

        artifact = artifact_from_path(path, stat_result)
        if artifact is None:
            _logger.debug("Skipping %s: not a regular file", path)
            continue

        age = artifact.age(now)
        if age < min_age_seconds:
            _logger.info(
                "Skipping %s: age %.0fs below readiness threshold %ds",
                path,
                age,
                min_age_seconds,
            )
            continue

        yield artifact
