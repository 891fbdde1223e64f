"""Data models for kiki-shell."""

from kikishell.models.document import (
    Chunk,
    Excerpt,
    FileMetadata,
    IndexedDocument,
    SourceFile,
    fingerprint,
)

__all__ = [
    "IndexedDocument",
    "Chunk",
    "Excerpt",
    "FileMetadata",
    "SourceFile",
    "fingerprint",
]
