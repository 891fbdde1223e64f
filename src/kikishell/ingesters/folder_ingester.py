"""Ingester for local folders."""

import logging
import os
from pathlib import Path
from typing import Iterator

from kikishell.ingesters.file_ingester import read_source_file
from kikishell.models import SourceFile

logger = logging.getLogger(__name__)

# Directories never worth indexing
SKIP_DIRS = {
    "__pycache__",
    "node_modules",
    "venv",
    "env",
    "dist",
    "build",
}


class FolderIngester:
    """Ingester for local filesystem folders."""

    source_type = "folder"

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing directory."""
        return source.is_dir()

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        """Yield files from a folder recursively.

        Paths are reported as the full path on disk, so documents indexed
        from a folder and the same file added on its own share one entry.

        Args:
            source: Path to the folder

        Yields:
            SourceFile objects for each file in the folder
        """
        for root, dirs, files in os.walk(source):
            dirs[:] = sorted(d for d in dirs if not self._should_skip(d))
            for filename in sorted(files):
                if self._should_skip(filename):
                    continue

                full_path = Path(root) / filename
                try:
                    yield read_source_file(full_path, str(full_path))
                except OSError as e:
                    logger.warning(f"Skipping {full_path}: {e}")

    def _should_skip(self, name: str) -> bool:
        """Skip hidden entries, build artifacts and version control."""
        return name.startswith(".") or name in SKIP_DIRS or name.endswith(".egg-info")
