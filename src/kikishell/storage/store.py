"""SQLite-backed storage for the retrieval index."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from kikishell.models import IndexedDocument
from kikishell.storage.schema import SCHEMA


class IndexStore:
    """SQLite-backed storage for indexed documents.

    Rows hold plain strings, so the on-disk form is independent of the
    machine and trivially JSON-serialisable.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the parent directory and schema if missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    def save_document(self, doc: IndexedDocument, position: int) -> None:
        """Insert or replace a document by path."""
        with self.connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO documents
                   (path, key, text, fingerprint, position, indexed_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    doc.path,
                    doc.key,
                    doc.text,
                    doc.fingerprint,
                    position,
                    datetime.now().isoformat(),
                ),
            )

    def load_documents(self) -> list[IndexedDocument]:
        """Return all documents in insertion order."""
        with self.connection() as conn:
            cursor = conn.execute(
                "SELECT key, path, text, fingerprint FROM documents ORDER BY position, path"
            )
            return [
                IndexedDocument(
                    key=row["key"],
                    path=row["path"],
                    text=row["text"],
                    fingerprint=row["fingerprint"],
                )
                for row in cursor
            ]

    def clear(self) -> None:
        """Remove every document."""
        with self.connection() as conn:
            conn.execute("DELETE FROM documents")

    def set_metadata(self, key: str, value: str) -> None:
        """Store a metadata key-value pair."""
        with self.connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_metadata(self, key: str) -> Optional[str]:
        """Retrieve a metadata value by key."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM metadata WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None
