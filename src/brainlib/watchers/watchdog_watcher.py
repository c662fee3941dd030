"""Change source backed by watchdog's native filesystem observers."""

import logging
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from brainlib.models import ChangeEvent, ChangeKind
from brainlib.protocols import ChangeCallback

logger = logging.getLogger(__name__)


def _as_path(raw: str | bytes) -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return Path(raw)


class ChangeEventHandler(FileSystemEventHandler):
    """Translate watchdog events into ChangeEvents for a callback.

    Runs on the observer thread, so the callback must return quickly and
    must never raise back into watchdog.
    """

    def __init__(self, callback: ChangeCallback):
        super().__init__()
        self.callback = callback

    def _emit(self, kind: ChangeKind, raw_path: str | bytes) -> None:
        event = ChangeEvent(kind=kind, path=_as_path(raw_path))
        try:
            self.callback(event)
        except Exception:
            logger.exception(f"Change handler failed for {event.kind.value} {event.path}")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.ADDED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.CHANGED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.REMOVED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # A rename is two independent facts: the old name is gone, the new one exists
        if not event.is_directory:
            self._emit(ChangeKind.REMOVED, event.src_path)
            self._emit(ChangeKind.ADDED, event.dest_path)


class WatchdogChangeSource:
    """Watch one directory (non-recursively) for document changes."""

    def __init__(self) -> None:
        self._observer: Optional[Observer] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self, directory: Path, callback: ChangeCallback) -> None:
        """Start the observer thread for directory."""
        if self._observer is not None:
            raise RuntimeError("Change source already started")

        observer = Observer()
        observer.schedule(ChangeEventHandler(callback), str(directory), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info(f"Watching {directory} for changes")

    def stop(self) -> None:
        """Stop the observer thread, if running."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
