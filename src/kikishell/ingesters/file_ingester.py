"""Ingester for a single local file."""

from pathlib import Path
from typing import Iterator

from kikishell.models import FileMetadata, SourceFile
from kikishell.utils.binary import detect_binary


def read_source_file(path: Path, display_path: str) -> SourceFile:
    """Read one file from disk; OSError propagates to the caller."""
    raw_content = path.read_bytes()
    is_binary = detect_binary(path.name, raw_content)

    metadata = FileMetadata(
        path=display_path,
        size_bytes=len(raw_content),
        extension=path.suffix.lower(),
        is_binary=is_binary,
    )
    content = None
    if not is_binary:
        content = raw_content.decode("utf-8", errors="replace")
    return SourceFile(metadata=metadata, content=content)


class FileIngester:
    """Ingester for one regular file.

    Unlike the folder ingester, a read failure is not skipped: the caller
    asked for this exact file and gets the error.
    """

    source_type = "file"

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing regular file."""
        return source.is_file()

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        yield read_source_file(source, str(source))
