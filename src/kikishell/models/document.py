"""Core data models for indexed documents, chunks and excerpts."""

import hashlib
from dataclasses import dataclass
from typing import Optional


def fingerprint(path: str, text: str) -> str:
    """Content hash identifying a (path, text) pair."""
    return hashlib.sha256(f"{path}:{text}".encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IndexedDocument:
    """A document held by the retrieval index.

    ``key`` is the logical name it was added under (a file path, or a label
    such as ``gen:out.py``); ``path`` identifies it inside the index.
    """

    key: str
    path: str
    text: str
    fingerprint: str

    @classmethod
    def create(cls, key: str, path: str, text: str) -> "IndexedDocument":
        return cls(key=key, path=path, text=text, fingerprint=fingerprint(path, text))


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of a larger text with its estimated size."""

    text: str
    index: int
    start_char: int
    end_char: int
    tokens: int


@dataclass(frozen=True)
class Excerpt:
    """A ranked snippet returned by an index search."""

    path: str
    text: str
    score: float
    fingerprint: str

    def render(self) -> str:
        return f"### RAG: {self.path}\n```\n{self.text}\n```"


@dataclass(frozen=True)
class FileMetadata:
    """Metadata for any ingested file (text or binary)."""

    path: str
    size_bytes: int
    extension: str
    is_binary: bool


@dataclass
class SourceFile:
    """A file read from an input source, before it enters the index."""

    metadata: FileMetadata
    content: Optional[str] = None  # None for binary files
