"""Protocol for text vectorisers used by the vector scorer."""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns texts into comparable vectors.

    The bundled HashedEmbedder counts hashed words, so similarity is
    lexical overlap rather than meaning.
    """

    def embed(self, texts: list[str]) -> np.ndarray:
        """Vectorise a batch of texts.

        Returns: array of shape (len(texts), dimension); rows are compared by cosine
        """
        ...
