"""Filesystem helpers."""

import os
from pathlib import Path

DATA_DIR_ENV = "AUTHFETCH_HOME"


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the authfetch data directory (~/.authfetch unless overridden)."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return ensure_dir(Path(override).expanduser())
    return ensure_dir(Path.home() / ".authfetch")
