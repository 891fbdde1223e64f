"""Persistence for the retrieval index."""

from kikishell.storage.store import IndexStore

__all__ = ["IndexStore"]
