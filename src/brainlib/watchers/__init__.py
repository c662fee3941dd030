"""Filesystem change sources for brainlib."""

from brainlib.watchers.watchdog_watcher import ChangeEventHandler, WatchdogChangeSource

__all__ = ["WatchdogChangeSource", "ChangeEventHandler"]
