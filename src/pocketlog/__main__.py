"""Allow ``python -m pocketlog``."""

from __future__ import annotations

from pocketlog.cli import run_entrypoint

if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
