from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from watchdog.events import FileSystemEvent


class SyncEventKind(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE_FILE = "delete-file"
    DELETE_DIR = "delete-dir"

    @property
    def is_delete(self) -> bool:
        return self in (SyncEventKind.DELETE_FILE, SyncEventKind.DELETE_DIR)


@dataclass(frozen=True)
class SyncEvent:
    """One filesystem change under an override root."""

    kind: SyncEventKind
    path: Path


def _delete_kind(is_directory: bool) -> SyncEventKind:
    return SyncEventKind.DELETE_DIR if is_directory else SyncEventKind.DELETE_FILE


def events_from_watchdog(event: FileSystemEvent) -> List[SyncEvent]:
    """Translate a watchdog event into zero or more sync events.

    Directory modifications (mtime bumps from child changes) and open/close
    notifications carry no content change and are dropped. A move becomes a
    delete of the old path followed by a create of the new one.
    """
    src = Path(os.fsdecode(event.src_path))
    kind = event.event_type

    if kind == "created":
        return [SyncEvent(SyncEventKind.CREATE, src)]
    if kind == "modified":
        if event.is_directory:
            return []
        return [SyncEvent(SyncEventKind.MODIFY, src)]
    if kind == "deleted":
        return [SyncEvent(_delete_kind(event.is_directory), src)]
    if kind == "moved":
        dest = Path(os.fsdecode(event.dest_path))
        return [
            SyncEvent(_delete_kind(event.is_directory), src),
            SyncEvent(SyncEventKind.CREATE, dest),
        ]
    return []


__all__ = ["SyncEventKind", "SyncEvent", "events_from_watchdog"]
