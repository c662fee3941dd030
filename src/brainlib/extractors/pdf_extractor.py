"""Extractor for PDF files (text layer only, no OCR)."""

import logging
from pathlib import Path

from pypdf import PdfReader

from brainlib.errors import ExtractionError

logger = logging.getLogger(__name__)


class PdfExtractor:
    """Extract the embedded text layer of a PDF with pypdf."""

    extensions = frozenset({".pdf"})

    def can_handle(self, path: Path) -> bool:
        """Check the file suffix against the supported set."""
        return path.suffix.lower() in self.extensions

    def extract(self, path: Path) -> str:
        """Extract text page by page.

        Pages are separated by a blank line so that page breaks also act as
        chunk boundaries. Scanned PDFs without a text layer yield "".

        Raises:
            ExtractionError: If the file is unreadable or not a valid PDF
        """
        try:
            with path.open("rb") as f:
                reader = PdfReader(f)
                pages = []
                for page in reader.pages:
                    pages.append(page.extract_text() or "")
        except OSError as e:
            raise ExtractionError(f"Cannot read {path.name}: {e}", path) from e
        except Exception as e:  # pypdf raises a wide range of errors on malformed files
            raise ExtractionError(f"Invalid PDF {path.name}: {e}", path) from e

        logger.debug(f"Extracted {len(pages)} pages from {path.name}")
        text = "\n\n".join(pages)
        return text.replace("\r\n", "\n").replace("\r", "\n")
