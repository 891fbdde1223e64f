"""Keyword scorer counting query tokens in the document text."""

from kikishell.models import IndexedDocument


class SubstringCountScorer:
    """Score = sum over query tokens of their case-insensitive occurrence count.

    Plain substring counting: "disk" also matches inside "disks". There is
    no length normalisation, so long documents rank higher on ties in
    relevance.
    """

    name = "substring"

    def score(self, document: IndexedDocument, tokens: list[str]) -> float:
        lowered = document.text.lower()
        return float(sum(lowered.count(token) for token in tokens if token))
