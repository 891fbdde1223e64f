"""Cosine scorer over hashed bag-of-words vectors."""

from functools import lru_cache

import numpy as np

from kikishell.embedders import HashedEmbedder
from kikishell.models import IndexedDocument
from kikishell.protocols import EmbeddingProvider


class VectorScorer:
    """Rank documents by cosine similarity of their embeddings to the query.

    Document vectors are cached by fingerprint, so a replaced document is
    re-embedded on its next search and an unchanged one never is.
    """

    name = "vector"

    def __init__(self, embedder: EmbeddingProvider | None = None):
        self.embedder = embedder or HashedEmbedder()
        self._cache: dict[str, np.ndarray] = {}
        # Keyed by query tokens; concurrent searches never share an entry
        self._query_vector = lru_cache(maxsize=32)(self._embed_query)

    def score(self, document: IndexedDocument, tokens: list[str]) -> float:
        if not tokens:
            return 0.0
        query = self._query_vector(tuple(tokens))
        return self._cosine_similarity(query, self._vector(document))

    def forget(self, fingerprints: set[str]) -> None:
        """Drop cached vectors that are no longer in the index."""
        for key in list(self._cache):
            if key not in fingerprints:
                del self._cache[key]

    def _embed_query(self, tokens: tuple[str, ...]) -> np.ndarray:
        return self.embedder.embed([" ".join(tokens)])[0]

    def _vector(self, document: IndexedDocument) -> np.ndarray:
        vector = self._cache.get(document.fingerprint)
        if vector is None:
            vector = self.embedder.embed([document.text])[0]
            self._cache[document.fingerprint] = vector
        return vector

    @staticmethod
    def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
        """Compute cosine similarity between two vectors."""
        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a == 0 or norm_b == 0:
            return 0.0
        return float(np.dot(a, b) / (norm_a * norm_b))
