"""Chunking strategies for oversized text."""

from kikishell.chunkers.paragraph_chunker import ParagraphChunker

__all__ = ["ParagraphChunker"]
