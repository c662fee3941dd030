"""Protocol for format-specific text extractors."""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class TextExtractor(Protocol):
    """Protocol for turning a file on disk into plain text.

    Implementations handle one family of formats (plain text, Markdown, PDF).
    Uses structural subtyping - no inheritance required.
    """

    @property
    def extensions(self) -> frozenset[str]:
        """Return the lower-case suffixes this extractor accepts (e.g. '.md')."""
        ...

    def can_handle(self, path: Path) -> bool:
        """Check if this extractor can process the given file."""
        ...

    def extract(self, path: Path) -> str:
        """Return the file's plain text.

        Raises ExtractionError when the file is unreadable or malformed.
        """
        ...
