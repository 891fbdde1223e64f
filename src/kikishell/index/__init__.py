"""In-process retrieval index over attached files and artifacts."""

from kikishell.index.excerpt import build_excerpt, tokenize_query
from kikishell.index.retrieval_index import (
    DEFAULT_EXCERPT_CHARS,
    DEFAULT_TOP_K,
    RetrievalIndex,
)

__all__ = [
    "DEFAULT_EXCERPT_CHARS",
    "DEFAULT_TOP_K",
    "RetrievalIndex",
    "build_excerpt",
    "tokenize_query",
]
