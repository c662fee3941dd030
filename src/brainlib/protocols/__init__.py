"""Protocol definitions for extensible components."""

from brainlib.protocols.chunker import ChunkingStrategy
from brainlib.protocols.extractor import TextExtractor
from brainlib.protocols.watcher import ChangeCallback, ChangeSource

__all__ = ["TextExtractor", "ChunkingStrategy", "ChangeSource", "ChangeCallback"]
