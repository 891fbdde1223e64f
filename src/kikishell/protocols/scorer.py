"""Protocol for retrieval relevance scorers."""

from typing import Protocol, runtime_checkable

from kikishell.models import IndexedDocument


@runtime_checkable
class RelevanceScorer(Protocol):
    """Protocol for ranking documents against a tokenised query.

    A score of zero (or less) means the document is not a hit.
    """

    @property
    def name(self) -> str:
        ...

    def score(self, document: IndexedDocument, tokens: list[str]) -> float:
        """Score a document against lower-cased query tokens."""
        ...
