"""Mutable, searchable collection of indexed documents."""

import logging
import sqlite3
from typing import Optional

from kikishell.errors import InputError
from kikishell.index.excerpt import DEFAULT_EXCERPT_CHARS, build_excerpt, tokenize_query
from kikishell.ingesters import get_ingester
from kikishell.ingesters.file_ingester import read_source_file
from kikishell.models import Excerpt, IndexedDocument
from kikishell.protocols import RelevanceScorer
from kikishell.scorers import SubstringCountScorer
from kikishell.storage import IndexStore
from kikishell.utils.paths import expand_path
from kikishell.utils.rwlock import ReadWriteLock
from kikishell.utils.text import decode_clipped

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


class RetrievalIndex:
    """Keyword-searchable documents, at most one per path.

    Re-adding a path replaces its document where it stands. Searches take
    the read side of a readers-writer lock and updates the write side, so
    a search never sees a half-applied update.

    When a store is attached every update is also written to disk. Those
    writes are best-effort: a failure is logged and the in-memory index
    keeps the update.
    """

    def __init__(
        self,
        enabled: bool = True,
        scorer: RelevanceScorer | None = None,
        store: IndexStore | None = None,
    ):
        self._enabled = enabled
        self.scorer = scorer or SubstringCountScorer()
        self.store = store
        self._docs: dict[str, IndexedDocument] = {}
        self._lock = ReadWriteLock()

    @classmethod
    def load(
        cls,
        store: IndexStore,
        enabled: bool = True,
        scorer: RelevanceScorer | None = None,
    ) -> "RetrievalIndex":
        """Open an index backed by store, restoring its documents."""
        index = cls(enabled=enabled, scorer=scorer, store=store)
        try:
            store.initialize()
            docs = store.load_documents()
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Could not load index from {store.path}: {e}")
            return index
        for doc in docs:
            index._docs[doc.path] = doc
        logger.debug(f"Loaded {len(docs)} documents from {store.path}")
        return index

    # State

    @property
    def enabled(self) -> bool:
        return self._enabled

    def toggle(self, enabled: bool) -> None:
        with self._lock.write():
            self._enabled = enabled

    def stats(self) -> tuple[bool, int]:
        with self._lock.read():
            return self._enabled, len(self._docs)

    def documents(self) -> list[IndexedDocument]:
        with self._lock.read():
            return list(self._docs.values())

    def get(self, path: str) -> Optional[IndexedDocument]:
        with self._lock.read():
            return self._docs.get(path)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._docs)

    def clear(self) -> None:
        """Drop every document (and its stored copy)."""
        with self._lock.write():
            self._docs.clear()
            self._forget_vectors()
            if self.store is not None:
                try:
                    self.store.clear()
                except (sqlite3.Error, OSError) as e:
                    logger.warning(f"Could not clear stored index: {e}")

    # Ingest

    def upsert(
        self,
        key: str,
        path: str | None,
        text: str,
        max_bytes: int = 0,
        max_chars: int = 0,
    ) -> IndexedDocument:
        """Add a document or replace the one with the same path.

        Args:
            key: Logical name the document was added under
            path: Identity inside the index; defaults to key
            text: Full text; cut at max_bytes UTF-8 bytes, then max_chars characters
            max_bytes: Byte ceiling, <= 0 for none
            max_chars: Character ceiling, <= 0 for none

        Returns:
            The stored document
        """
        path = (path or key or "").strip()
        if not path:
            raise InputError("empty path")

        text = decode_clipped(text.encode("utf-8"), max_bytes, max_chars)
        doc = IndexedDocument.create(key=key or path, path=path, text=text)

        with self._lock.write():
            replaced = path in self._docs
            self._docs[path] = doc
            if replaced:
                self._forget_vectors()
            self._persist(doc, list(self._docs).index(path))

        logger.debug(f"{'Replaced' if replaced else 'Indexed'} {path} ({len(text)} chars)")
        return doc

    def add_text(self, key: str, text: str, max_chars: int = 0) -> IndexedDocument:
        """Index text under a logical key such as ``gen:out.py``."""
        return self.upsert(key, key, text, max_chars=max_chars)

    def add_file(self, path: str, max_bytes: int = 0, max_chars: int = 0) -> IndexedDocument:
        """Read and index one file.

        Raises:
            InputError: empty path or binary file
            OSError: the file could not be read; the index is unchanged
        """
        if not path or not path.strip():
            raise InputError("empty path")
        file_path = expand_path(path)
        source = read_source_file(file_path, str(file_path))
        if source.content is None:
            raise InputError(f"binary file: {file_path}")
        return self.upsert(str(file_path), str(file_path), source.content, max_bytes, max_chars)

    def add_source(self, path: str, max_bytes: int = 0, max_chars: int = 0) -> list[IndexedDocument]:
        """Index a file, a folder (recursively) or a zip archive."""
        if not path or not path.strip():
            raise InputError("empty path")
        source_path = expand_path(path)
        if source_path.is_file() and source_path.suffix.lower() != ".zip":
            return [self.add_file(str(source_path), max_bytes, max_chars)]

        ingester = get_ingester(source_path)
        if ingester is None:
            raise InputError(f"cannot index: {source_path}")

        added = []
        for source in ingester.ingest(source_path):
            if source.content is None:
                logger.debug(f"Skipping binary file {source.metadata.path}")
                continue
            key = source.metadata.path
            added.append(self.upsert(key, key, source.content, max_bytes, max_chars))
        logger.debug(f"Indexed {len(added)} files from {ingester.source_type} {source_path}")
        return added

    # Search

    def search(
        self,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ) -> list[Excerpt]:
        """Rank documents against query and cut an excerpt from each hit.

        Results are ordered by score (highest first), ties by path. A
        disabled or empty index, or a query without word tokens, yields an
        empty list.
        """
        tokens = tokenize_query(query or "")
        if not tokens:
            return []
        if top_k <= 0:
            top_k = DEFAULT_TOP_K

        with self._lock.read():
            if not self._enabled or not self._docs:
                return []
            scored = []
            for doc in self._docs.values():
                score = self.scorer.score(doc, tokens)
                if score > 0:
                    scored.append((score, doc))

        scored.sort(key=lambda hit: (-hit[0], hit[1].path))
        return [
            Excerpt(
                path=doc.path,
                text=build_excerpt(doc.text, tokens, excerpt_chars),
                score=score,
                fingerprint=doc.fingerprint,
            )
            for score, doc in scored[:top_k]
        ]

    # Internals (caller holds the write lock)

    def _persist(self, doc: IndexedDocument, position: int) -> None:
        if self.store is None:
            return
        try:
            self.store.save_document(doc, position)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Could not store {doc.path}: {e}")

    def _forget_vectors(self) -> None:
        forget = getattr(self.scorer, "forget", None)
        if forget is not None:
            forget({doc.fingerprint for doc in self._docs.values()})
