"""Incremental sync of override edits into the merged tree (development mode)."""

from .events import SyncEvent, SyncEventKind, events_from_watchdog
from .reconcile import Reconciler, SyncResult
from .watcher import LiveSyncWatcher

__all__ = [
    "SyncEvent",
    "SyncEventKind",
    "events_from_watchdog",
    "Reconciler",
    "SyncResult",
    "LiveSyncWatcher",
]
