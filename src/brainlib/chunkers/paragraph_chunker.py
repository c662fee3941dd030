"""Paragraph-based chunking strategy."""

import re

from brainlib.models import Chunk

# A blank line, possibly holding stray spaces or tabs
BLANK_LINE = re.compile(r"\n[ \t]*\n")


class ParagraphChunker:
    """Default chunking: split on blank lines, trim, drop fragments <= 10 chars.

    Very short fragments (stray headings, page numbers, "---" rules) carry no
    searchable meaning but would still match query terms, so they are
    dropped instead of merged.
    """

    MIN_CHUNK_LENGTH = 10

    def __init__(self, min_length: int | None = None):
        self.min_length = self.MIN_CHUNK_LENGTH if min_length is None else min_length

    def chunk(self, text: str, source: str) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Extracted plain text of one file
            source: Base name of the file the text came from

        Returns:
            Chunks in document order, indexed from 0
        """
        if not text or not text.strip():
            return []

        chunks = []
        for raw in BLANK_LINE.split(text):
            content = raw.strip()
            if len(content) <= self.min_length:
                continue
            chunks.append(Chunk(content=content, source=source, chunk_index=len(chunks)))

        return chunks
