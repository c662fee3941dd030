"""The live document index."""

from brainlib.index.live_index import LiveIndex, containment_score, tokenize

__all__ = ["LiveIndex", "tokenize", "containment_score"]
