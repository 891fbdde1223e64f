"""Ingester for ZIP archive files."""

import zipfile
from pathlib import Path
from typing import Iterator

from kikishell.models import FileMetadata, SourceFile
from kikishell.utils.binary import detect_binary


class ZipIngester:
    """Ingester for ZIP archive files."""

    source_type = "zip"

    def can_handle(self, source: Path) -> bool:
        """Check if this is a zip file."""
        return source.suffix.lower() == ".zip" and source.is_file()

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        """Yield files from a ZIP archive.

        Members are reported as ``<archive>!<member>``.

        Args:
            source: Path to the ZIP file

        Yields:
            SourceFile objects for each file in the archive
        """
        with zipfile.ZipFile(source, "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue

                raw_content = zf.read(info.filename)
                is_binary = detect_binary(info.filename, raw_content)

                metadata = FileMetadata(
                    path=f"{source}!{info.filename}",
                    size_bytes=info.file_size,
                    extension=Path(info.filename).suffix.lower(),
                    is_binary=is_binary,
                )

                content = None
                if not is_binary:
                    content = raw_content.decode("utf-8", errors="replace")

                yield SourceFile(metadata=metadata, content=content)
