"""Protocol for filesystem change notification sources."""

from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from brainlib.models import ChangeEvent

ChangeCallback = Callable[[ChangeEvent], object]


@runtime_checkable
class ChangeSource(Protocol):
    """Protocol for anything that reports add/change/remove events for a folder.

    Delivery is at-least-once and unordered across files; consumers must
    treat every event as a hint to re-read the file's current state.
    """

    def start(self, directory: Path, callback: ChangeCallback) -> None:
        """Begin delivering events for files directly inside directory."""
        ...

    def stop(self) -> None:
        """Stop delivering events and release resources."""
        ...
