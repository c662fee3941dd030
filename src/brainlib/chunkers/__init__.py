"""Chunking strategies for brainlib."""

from brainlib.chunkers.paragraph_chunker import ParagraphChunker

__all__ = ["ParagraphChunker"]
