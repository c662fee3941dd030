"""Format-specific text extractors for brainlib."""

from pathlib import Path
from typing import Optional

from brainlib.extractors.markdown_extractor import MarkdownExtractor
from brainlib.extractors.pdf_extractor import PdfExtractor
from brainlib.extractors.plain_text_extractor import PlainTextExtractor
from brainlib.protocols import TextExtractor

# Registry of available extractors
_EXTRACTORS: list[TextExtractor] = [
    PlainTextExtractor(),
    MarkdownExtractor(),
    PdfExtractor(),
]


def get_extractor(path: Path | str) -> Optional[TextExtractor]:
    """Find an extractor that can handle the given file.

    Args:
        path: Path (or bare file name) of the document

    Returns:
        A TextExtractor instance for the file's format, or None if unsupported
    """
    file_path = Path(path)
    for extractor in _EXTRACTORS:
        if extractor.can_handle(file_path):
            return extractor
    return None


def register_extractor(extractor: TextExtractor) -> None:
    """Register a custom extractor (for plugins/extensions).

    Args:
        extractor: An object implementing the TextExtractor protocol
    """
    _EXTRACTORS.append(extractor)


def supported_extensions() -> frozenset[str]:
    """Return every suffix some registered extractor accepts."""
    return frozenset(ext for extractor in _EXTRACTORS for ext in extractor.extensions)


__all__ = [
    "get_extractor",
    "register_extractor",
    "supported_extensions",
    "PlainTextExtractor",
    "MarkdownExtractor",
    "PdfExtractor",
]
