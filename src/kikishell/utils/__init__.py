"""Utility functions for kiki-shell."""

from kikishell.utils.binary import detect_binary, is_binary_content, is_binary_extension
from kikishell.utils.paths import expand_path
from kikishell.utils.rwlock import ReadWriteLock
from kikishell.utils.text import clip_bytes, clip_chars, decode_clipped, truncate_preview

__all__ = [
    "ReadWriteLock",
    "clip_bytes",
    "clip_chars",
    "decode_clipped",
    "detect_binary",
    "expand_path",
    "is_binary_content",
    "is_binary_extension",
    "truncate_preview",
]
