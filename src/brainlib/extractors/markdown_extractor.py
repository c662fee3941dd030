"""Extractor for Markdown files."""

import re
from pathlib import Path

from brainlib.extractors.plain_text_extractor import read_text

# A YAML front-matter block must open on the very first line
FRONT_MATTER = re.compile(r"\A---[ \t]*\n(?:.*?\n)?(?:---|\.\.\.)[ \t]*(?:\n|\Z)", re.DOTALL)


def strip_front_matter(text: str) -> str:
    """Remove a leading YAML front-matter block, if there is one."""
    return FRONT_MATTER.sub("", text, count=1)


class MarkdownExtractor:
    """Extractor for Markdown notes.

    The Markdown body is kept as-is (headings, lists and emphasis are
    searchable text too); only front matter is dropped since it is metadata
    rather than content.
    """

    extensions = frozenset({".md", ".markdown"})

    def can_handle(self, path: Path) -> bool:
        """Check the file suffix against the supported set."""
        return path.suffix.lower() in self.extensions

    def extract(self, path: Path) -> str:
        return strip_front_matter(read_text(path))
