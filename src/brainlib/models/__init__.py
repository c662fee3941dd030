"""Data models for brainlib."""

from brainlib.models.document import ChangeEvent, ChangeKind, Chunk, SearchResult

__all__ = ["Chunk", "SearchResult", "ChangeEvent", "ChangeKind"]
