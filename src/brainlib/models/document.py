"""Core data models for chunks, search results and change events."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class Chunk:
    """A paragraph of extracted text tagged with the file it came from."""

    content: str
    source: str  # file base name, not a full path
    chunk_index: int = 0


@dataclass(frozen=True)
class SearchResult:
    """A ranked match returned by the index."""

    content: str
    source: str
    score: int


class ChangeKind(str, Enum):
    """Kinds of filesystem notifications the index reacts to."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeEvent:
    """A single filesystem notification for one path."""

    kind: ChangeKind
    path: Path

    @property
    def source(self) -> str:
        return self.path.name
