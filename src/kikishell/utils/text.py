"""Text truncation helpers."""

import codecs


def clip_bytes(data: bytes, max_bytes: int) -> bytes:
    """Cut data to at most max_bytes; <= 0 means no limit."""
    if max_bytes > 0 and len(data) > max_bytes:
        return data[:max_bytes]
    return data


def clip_chars(text: str, max_chars: int) -> str:
    """Cut text to at most max_chars codepoints; <= 0 means no limit."""
    if max_chars > 0 and len(text) > max_chars:
        return text[:max_chars]
    return text


def decode_clipped(data: bytes, max_bytes: int, max_chars: int) -> str:
    """Apply the byte ceiling, decode as UTF-8, then apply the char ceiling.

    Invalid bytes become U+FFFD. A multi-byte character cut in half by the
    byte ceiling is dropped.
    """
    clipped = clip_bytes(data, max_bytes)
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    # a non-final decode holds back an incomplete trailing sequence
    text = decoder.decode(clipped, final=len(clipped) == len(data))
    return clip_chars(text, max_chars)


def truncate_preview(text: str, max_chars: int) -> str:
    """Shorten text for display, marking the cut with an ellipsis."""
    text = text.strip()
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars] + "…"
