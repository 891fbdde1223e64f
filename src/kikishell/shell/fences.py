"""Remove markdown code fences from model output."""

import re

_INLINE_FENCE = re.compile(r"```[A-Za-z0-9_-]*")


def strip_markdown_fences(text: str) -> str:
    """Drop every line that opens or closes a ``` fence, keeping the body."""
    text = text.strip()
    if not text:
        return text
    lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
    return "\n".join(lines).strip()


def strip_fences_from_chunk(chunk: str) -> str:
    """Best-effort removal of fence markers from a streamed piece of text."""
    if not chunk:
        return chunk
    return _INLINE_FENCE.sub("", chunk)
