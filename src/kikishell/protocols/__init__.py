"""Protocol definitions for extensible components."""

from kikishell.protocols.chunker import ChunkingStrategy
from kikishell.protocols.embedder import EmbeddingProvider
from kikishell.protocols.estimator import TokenEstimator
from kikishell.protocols.ingester import Ingester
from kikishell.protocols.scorer import RelevanceScorer

__all__ = [
    "ChunkingStrategy",
    "EmbeddingProvider",
    "Ingester",
    "RelevanceScorer",
    "TokenEstimator",
]
