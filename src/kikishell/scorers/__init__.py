"""Relevance scorers for the retrieval index."""

from kikishell.scorers.substring import SubstringCountScorer
from kikishell.scorers.vector import VectorScorer

_SCORERS = {
    "substring": SubstringCountScorer,
    "vector": VectorScorer,
}


def get_scorer(name: str):
    """Build a scorer by name ('substring' or 'vector')."""
    try:
        return _SCORERS[name.strip().lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown scorer: {name!r} (choose from {', '.join(sorted(_SCORERS))})"
        ) from None


__all__ = ["SubstringCountScorer", "VectorScorer", "get_scorer"]
