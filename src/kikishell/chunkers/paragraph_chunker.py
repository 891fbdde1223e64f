"""Paragraph-based chunking strategy."""

import re
from typing import Iterator

from kikishell.budget import HeuristicEstimator
from kikishell.models import Chunk
from kikishell.protocols import TokenEstimator

Span = tuple[int, int]

# Boundaries tried in order: blank lines, then lines, then whitespace.
_BOUNDARIES = (
    re.compile(r"\n\s*\n"),
    re.compile(r"\n"),
    re.compile(r"\s+"),
)


def _trimmed(text: str, start: int, end: int) -> Iterator[Span]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start < end:
        yield start, end


def _spans(text: str, start: int, end: int, boundary: re.Pattern) -> Iterator[Span]:
    """Yield the non-blank segments of text[start:end] between boundaries."""
    pos = start
    for match in boundary.finditer(text, start, end):
        yield from _trimmed(text, pos, match.start())
        pos = match.end()
    yield from _trimmed(text, pos, end)


class ParagraphChunker:
    """Split text into chunks that fit a token budget.

    Consecutive paragraphs are packed greedily into one chunk while the
    chunk stays within budget. A paragraph too large on its own is packed
    line by line, and a line too large on its own word by word. A single
    word larger than the budget becomes its own chunk: words are never cut.

    Every chunk is a contiguous slice of the input, so joining the chunks
    loses nothing but the whitespace at the boundaries.
    """

    def __init__(self, estimator: TokenEstimator | None = None):
        self.estimator = estimator or HeuristicEstimator()

    def split(self, text: str, max_tokens: int) -> list[Chunk]:
        """Split text into ordered chunks.

        Args:
            text: The text to split
            max_tokens: Estimated token ceiling per chunk; <= 0 disables splitting

        Returns:
            List of Chunk objects with position information
        """
        if not text.strip():
            return [Chunk(text=text, index=0, start_char=0, end_char=len(text), tokens=0)]

        whole = next(_trimmed(text, 0, len(text)))
        if max_tokens <= 0 or self._fits(text, whole, max_tokens):
            spans = [whole]
        else:
            spans = list(self._pack(text, whole, max_tokens, level=0))

        # Never drop content, whatever the input looked like
        if not spans:
            spans = [whole]

        chunks = []
        for idx, (start, end) in enumerate(spans):
            piece = text[start:end]
            chunks.append(
                Chunk(
                    text=piece,
                    index=idx,
                    start_char=start,
                    end_char=end,
                    tokens=self.estimator.estimate(piece),
                )
            )
        return chunks

    def _fits(self, text: str, span: Span, max_tokens: int) -> bool:
        return self.estimator.estimate(text[span[0] : span[1]]) <= max_tokens

    def _pack(self, text: str, region: Span, max_tokens: int, level: int) -> Iterator[Span]:
        """Greedily pack the segments of region into spans within budget."""
        last_level = level == len(_BOUNDARIES) - 1
        pending: Span | None = None

        for span in _spans(text, region[0], region[1], _BOUNDARIES[level]):
            if pending is not None:
                merged = (pending[0], span[1])
                if self._fits(text, merged, max_tokens):
                    pending = merged
                    continue
                yield pending
                pending = None

            if last_level or self._fits(text, span, max_tokens):
                pending = span
            else:
                yield from self._pack(text, span, max_tokens, level + 1)

        if pending is not None:
            yield pending
