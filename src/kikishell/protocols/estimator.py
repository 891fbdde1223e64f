"""Protocol for token count estimation."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenEstimator(Protocol):
    """Protocol for token estimators.

    The default is a character heuristic; a real tokenizer can be dropped in
    without touching the splitter, reducer or assembler.
    """

    def estimate(self, text: str) -> int:
        """Return a non-negative token estimate for text."""
        ...
