"""Query tokenisation and excerpt windows."""

import re

DEFAULT_EXCERPT_CHARS = 800
ELLIPSIS = "…"

# Letters, digits, underscore and hyphen runs
_TOKEN_RE = re.compile(r"[\w-]+")


def tokenize_query(query: str) -> list[str]:
    """Lower-case a query and split it into word tokens."""
    return _TOKEN_RE.findall(query.strip().lower())


def earliest_match(text: str, tokens: list[str]) -> int | None:
    """Position of the first case-insensitive occurrence of any token."""
    words = sorted({t for t in tokens if t}, key=len, reverse=True)
    if not words:
        return None
    pattern = re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)
    match = pattern.search(text)
    return match.start() if match else None


def build_excerpt(text: str, tokens: list[str], max_chars: int = DEFAULT_EXCERPT_CHARS) -> str:
    """Cut a window of max_chars around the first query hit.

    The window starts a third of its width before the hit and is clipped
    to the text; an ellipsis marks each side that was cut. Without a hit
    the leading characters are returned.
    """
    if max_chars <= 0:
        max_chars = DEFAULT_EXCERPT_CHARS

    best = earliest_match(text, tokens)
    if best is None:
        return text[:max_chars]

    start = max(best - max_chars // 3, 0)
    end = min(start + max_chars, len(text))
    snippet = text[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet
