"""Extractor for plain text files."""

from pathlib import Path

from brainlib.errors import ExtractionError


def read_text(path: Path) -> str:
    """Read a file as UTF-8 with normalised line endings.

    Undecodable bytes are replaced rather than rejected.
    """
    try:
        raw_content = path.read_bytes()
    except OSError as e:
        raise ExtractionError(f"Cannot read {path.name}: {e}", path) from e

    text = raw_content.decode("utf-8", errors="replace")
    return text.replace("\r\n", "\n").replace("\r", "\n")


class PlainTextExtractor:
    """Passthrough extractor for .txt files."""

    extensions = frozenset({".txt"})

    def can_handle(self, path: Path) -> bool:
        """Check the file suffix against the supported set."""
        return path.suffix.lower() in self.extensions

    def extract(self, path: Path) -> str:
        return read_text(path)
