"""Exception types for the PocketLog uploader."""

from __future__ import annotations


class PocketLogError(Exception):
    """Base exception for uploader failures."""

    pass


class ConfigurationError(PocketLogError):
    """Raised when a required setting is missing and the run cannot start."""

    pass


class ArtifactTooLargeError(PocketLogError):
    """Raised when an artifact exceeds the single PUT size limit."""

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"Artifact '{path}' ({_format_size(size)}) exceeds the single PUT limit "
            f"of {_format_size(limit)}"
        )


def _format_size(size: int) -> str:
    """Format bytes as human-readable size."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}TB"
