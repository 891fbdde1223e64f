"""Path helpers."""

from pathlib import Path


def expand_path(path: str) -> Path:
    """Strip surrounding whitespace and expand a leading ``~``."""
    return Path(path.strip()).expanduser()
