"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from kikishell.models import Chunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for splitting text that does not fit a token budget."""

    def split(self, text: str, max_tokens: int) -> list[Chunk]:
        """Split text into ordered chunks of at most max_tokens each."""
        ...
