"""Hashed bag-of-words embedding provider."""

import re

import numpy as np

_WORD_RE = re.compile(r"[^\W_]+")

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def fnv1a_32(value: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 encoding of value."""
    h = _FNV_OFFSET
    for byte in value.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


class HashedEmbedder:
    """Embedding provider that hashes words into a fixed number of buckets.

    No model, no download: each lower-cased word adds one to bucket
    ``fnv1a(word) % dimension`` and the vector is L2-normalised, so a dot
    product is a cosine similarity over word overlap.
    """

    DEFAULT_DIMENSION = 256

    def __init__(self, dimension: int | None = None):
        self.dimension = dimension or self.DEFAULT_DIMENSION

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            numpy array of shape (len(texts), dimension)
        """
        vectors = np.zeros((len(texts), self.dimension), dtype=np.float32)
        for row, text in enumerate(texts):
            for word in _WORD_RE.findall(text.lower()):
                vectors[row, fnv1a_32(word) % self.dimension] += 1.0

        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return vectors / norms
