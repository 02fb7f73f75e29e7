"""Live synchronization of override edits into the merged tree.

Event flow::

    watchdog observer thread
        -> queue (SyncEvent messages)
        -> dispatcher thread (single consumer)
        -> per-root lanes on a thread pool -> Reconciler.apply

Events for the same watched root run strictly in arrival order; different
roots may run in parallel. Their destination subtrees are disjoint except for
the manifest, which is only written under ``Reconciler.admin_lock``.

Override roots created after ``start()`` are found through non-recursive
watches on their nearest existing ancestor.
"""
from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from adminstack.core.config.domains.admin import AdminConfig
from adminstack.core.layers.stack import LayerStack, WatchedRoot
from adminstack.core.manifest import RuntimeConfig
from adminstack.core.materialize.tree import MergedTree

from .events import SyncEvent, SyncEventKind, events_from_watchdog
from .reconcile import Reconciler, StackResolver, SyncResult

logger = logging.getLogger(__name__)

_STOP = object()
_RESCAN = object()


class _OverrideEventHandler(FileSystemEventHandler):
    def __init__(self, sink: Callable[[SyncEvent], None]) -> None:
        super().__init__()
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        for sync_event in events_from_watchdog(event):
            self._sink(sync_event)


class _PendingRootHandler(FileSystemEventHandler):
    """Watches the ancestors of override roots that do not exist yet."""

    def __init__(self, on_created: Callable[[], None]) -> None:
        super().__init__()
        self._on_created = on_created

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("created", "moved") and event.is_directory:
            self._on_created()


class LiveSyncWatcher:
    """Keeps a materialized tree in sync with the project's override directories.

    Only override roots are watched; base and plugin packages are treated as
    immutable for the session. A root that does not exist yet is picked up once
    it is created: its nearest existing ancestor is watched until then. Failed
    events are logged and not retried.
    """

    def __init__(
        self,
        stack: LayerStack,
        tree: MergedTree,
        runtime_config: RuntimeConfig,
        *,
        config: AdminConfig,
        resolver: Optional[StackResolver] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.reconciler = Reconciler(
            stack,
            tree,
            runtime_config,
            config=config,
            resolver=resolver,
        )
        self._workers = workers or config.sync_workers
        self._queue: "queue.Queue[Union[SyncEvent, object]]" = queue.Queue()
        self._lanes: Dict[Optional[Path], concurrent.futures.Future] = {}
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._dispatcher: Optional[threading.Thread] = None
        self._observer: Optional[Observer] = None
        self._handler = _OverrideEventHandler(self.submit)
        self._pending_handler = _PendingRootHandler(lambda: self._queue.put(_RESCAN))
        self._lock = threading.Lock()
        self._roots_lock = threading.Lock()
        self._pending: List[WatchedRoot] = []
        self._ancestor_watches: Set[Path] = set()
        self.results: List[SyncResult] = []

    # ---------- synchronous path ----------

    def apply(self, event: SyncEvent) -> SyncResult:
        """Reconcile one event on the calling thread."""
        result = self.reconciler.apply(event)
        with self._lock:
            self.results.append(result)
        return result

    # ---------- queued path ----------

    def _ensure_dispatcher(self) -> None:
        with self._lock:
            if self._dispatcher is not None:
                return
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=self._workers,
                thread_name_prefix="adminstack-sync",
            )
            self._dispatcher = threading.Thread(
                target=self._dispatch_loop,
                args=(self._executor,),
                name="adminstack-sync-dispatch",
                daemon=True,
            )
            self._dispatcher.start()

    def submit(self, event: SyncEvent) -> None:
        """Queue an event for asynchronous reconciliation."""
        self._ensure_dispatcher()
        self._queue.put(event)

    def _lane_key(self, event: SyncEvent) -> Optional[Path]:
        owner = self.reconciler.classify(event.path)
        return owner[0].source if owner is not None else None

    def _run_in_lane(
        self,
        previous: Optional[concurrent.futures.Future],
        event: SyncEvent,
    ) -> SyncResult:
        # The pool starts tasks in submission order, so ``previous`` is already
        # running or finished here.
        if previous is not None:
            concurrent.futures.wait([previous])
        return self.apply(event)

    def _dispatch_loop(self, executor: concurrent.futures.ThreadPoolExecutor) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if item is _RESCAN:
                    self._promote_pending()
                elif isinstance(item, SyncEvent):
                    key = self._lane_key(item)
                    previous = self._lanes.get(key)
                    self._lanes[key] = executor.submit(self._run_in_lane, previous, item)
            finally:
                self._queue.task_done()

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued event has been applied.

        Returns:
            False if ``timeout`` elapsed first.
        """
        if self._dispatcher is None:
            return True
        self._queue.join()
        _, pending = concurrent.futures.wait(list(self._lanes.values()), timeout=timeout)
        return not pending

    # ---------- filesystem observer ----------

    def _schedule_root(self, observer: Observer, root: WatchedRoot) -> bool:
        try:
            observer.schedule(self._handler, str(root.source), recursive=True)
        except OSError as exc:
            logger.warning("Cannot watch %s: %s", root.source, exc)
            return False
        return True

    def _follow_pending(self, observer: Observer, root: WatchedRoot) -> bool:
        """Watch ``root`` if it exists, else its nearest existing ancestor.

        Returns:
            True once the root no longer needs following.
        """
        while True:
            if root.source.is_dir():
                if self._schedule_root(observer, root):
                    logger.info("Watching new override directory %s", root.source)
                    self.submit(SyncEvent(SyncEventKind.CREATE, root.source))
                return True
            ancestor = next((p for p in root.source.parents if p.is_dir()), None)
            if ancestor is None or ancestor in self._ancestor_watches:
                return False
            try:
                observer.schedule(self._pending_handler, str(ancestor), recursive=False)
            except OSError as exc:
                logger.warning("Cannot watch %s for %s: %s", ancestor, root.source, exc)
                return True
            self._ancestor_watches.add(ancestor)

    def _promote_pending(self) -> None:
        observer = self._observer
        if observer is None:
            return
        with self._roots_lock:
            self._pending = [root for root in self._pending if not self._follow_pending(observer, root)]

    def start(self) -> "LiveSyncWatcher":
        """Start watching every override root.

        Roots that exist are watched recursively. Missing roots are followed
        through their ancestors and synced in full once they appear.
        """
        if self._observer is not None:
            return self
        self._ensure_dispatcher()
        observer = Observer()
        scheduled = 0
        pending: List[WatchedRoot] = []
        for root in self.reconciler.watched_roots:
            if not root.source.is_dir():
                logger.debug("Waiting for %s to be created", root.source)
                pending.append(root)
            elif self._schedule_root(observer, root):
                scheduled += 1
        observer.start()
        self._observer = observer
        with self._roots_lock:
            self._pending = pending
        self._promote_pending()
        logger.info("Watching %d override director%s", scheduled, "y" if scheduled == 1 else "ies")
        return self

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the observer, finish queued events and release threads."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None
        if self._dispatcher is not None:
            self._queue.put(_STOP)
            self._dispatcher.join(timeout)
            self._dispatcher = None
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._lanes.clear()
        with self._roots_lock:
            self._pending = []
            self._ancestor_watches.clear()

    def __enter__(self) -> "LiveSyncWatcher":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["LiveSyncWatcher"]
