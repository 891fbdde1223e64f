"""Embedding providers for vector scoring."""

from kikishell.embedders.hashed import HashedEmbedder

__all__ = ["HashedEmbedder"]
