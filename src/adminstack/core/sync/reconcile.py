"""Single-event reconciliation of the merged tree.

Each event maps to one idempotent action:

- create/modify: copy the override path onto its destination
- delete: remove the destination, then restore the same relative path from the
  next-lower layer when it still exists there

Deletions that touch the app entry, the manifest, or a plugin's admin entry
also regenerate the manifest from a freshly resolved plugin set, unless the
project override provides its own manifest.

Every write under the merged tree's ``admin/`` directory, including manifest
regeneration triggered from an extension root, holds ``Reconciler.admin_lock``.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from adminstack.core.config.domains.admin import AdminConfig
from adminstack.core.exceptions import AdminStackError, WatchEventFailure
from adminstack.core.layers.stack import ADMIN_SUBDIR, LayerKind, LayerStack, WatchedRoot, resolve_layer_stack
from adminstack.core.manifest import RuntimeConfig, write_manifest
from adminstack.core.materialize.tree import MergedTree
from adminstack.core.utils.fs import copy_path, path_exists, remove_path

from .events import SyncEvent

logger = logging.getLogger(__name__)

StackResolver = Callable[[], LayerStack]


@dataclass(frozen=True)
class SyncResult:
    """What one reconciliation did.

    ``action`` is one of: ``copied``, ``restored``, ``removed``, ``ignored``,
    ``failed``.
    """

    event: SyncEvent
    action: str
    destination: Optional[Path] = None
    manifest_regenerated: bool = False
    error: Optional[str] = None


def _covers(path: Path, targets: Iterable[Path]) -> bool:
    """True when ``path`` equals a target or is one of its ancestor directories."""
    for target in targets:
        if path == target or path in target.parents:
            return True
    return False


class Reconciler:
    """Applies sync events for one materialized tree."""

    def __init__(
        self,
        stack: LayerStack,
        tree: MergedTree,
        runtime_config: RuntimeConfig,
        *,
        config: AdminConfig,
        resolver: Optional[StackResolver] = None,
    ) -> None:
        self.stack = stack
        self.tree = tree
        self.runtime_config = runtime_config
        self.config = config
        self._resolver = resolver or (lambda: resolve_layer_stack(stack.project_root, config=config))
        self.admin_lock = threading.RLock()
        # Most specific source first so nested roots classify correctly.
        self.watched_roots: Tuple[WatchedRoot, ...] = tuple(
            sorted(stack.watched_roots(), key=lambda r: len(r.source.parts), reverse=True)
        )

    def classify(self, path: Path) -> Optional[Tuple[WatchedRoot, Path]]:
        """Return the watched root owning ``path`` and the path relative to it."""
        for root in self.watched_roots:
            rel = root.relative(path)
            if rel is not None:
                return root, rel
        return None

    def destination_for(self, root: WatchedRoot, rel: Path) -> Path:
        return self.tree.root / root.destination / rel

    def _manifest_targets(self, root: WatchedRoot) -> List[Path]:
        targets = [self.tree.entry_rel, self.tree.manifest_rel]
        if root.kind is LayerKind.EXTENSION_OVERRIDE and root.plugin is not None:
            targets.append(root.plugin.destination / self.config.plugin_entry)
        return targets

    def affects_manifest(self, root: WatchedRoot, rel: Path) -> bool:
        return _covers(root.destination / rel, self._manifest_targets(root))

    def manifest_override(self) -> Optional[Path]:
        """The project override's own manifest, when it currently provides one."""
        try:
            rel = self.tree.manifest_rel.relative_to(ADMIN_SUBDIR)
        except ValueError:
            return None
        candidate = self.stack.project_override / rel
        return candidate if candidate.is_file() else None

    def regenerate_manifest(self) -> bool:
        """Rewrite the manifest from a freshly resolved plugin set.

        Returns:
            False when the project override supplies the manifest; that file is
            copied back instead so the higher layer keeps winning.
        """
        with self.admin_lock:
            override = self.manifest_override()
            if override is not None:
                copy_path(override, self.tree.manifest_path)
                return False
            stack = self._resolver()
            write_manifest(self.tree.manifest_path, stack.plugins, self.runtime_config)
            return True

    def _apply_copy(self, event: SyncEvent, dest: Path) -> SyncResult:
        if not path_exists(event.path):
            # Removed again before we got to it; the delete event will follow.
            return SyncResult(event=event, action="ignored", destination=dest)
        copy_path(event.path, dest)
        logger.debug("Synced %s -> %s", event.path, dest)
        return SyncResult(event=event, action="copied", destination=dest)

    def _apply_delete(self, event: SyncEvent, root: WatchedRoot, rel: Path, dest: Path) -> SyncResult:
        remove_path(dest)
        action = "removed"
        fallback = root.fallback / rel
        if path_exists(fallback):
            copy_path(fallback, dest)
            action = "restored"
            logger.debug("Restored %s from %s", dest, fallback)
        else:
            logger.debug("Removed %s (no lower layer provides it)", dest)

        regenerated = False
        if self.affects_manifest(root, rel):
            regenerated = self.regenerate_manifest()
            if regenerated:
                logger.info("Regenerated plugin manifest after deleting %s", event.path)
            else:
                logger.debug("Kept project manifest override after deleting %s", event.path)
        return SyncResult(
            event=event,
            action=action,
            destination=dest,
            manifest_regenerated=regenerated,
        )

    def _apply(self, event: SyncEvent, root: WatchedRoot, rel: Path, dest: Path) -> SyncResult:
        if event.kind.is_delete:
            return self._apply_delete(event, root, rel, dest)
        return self._apply_copy(event, dest)

    def apply(self, event: SyncEvent) -> SyncResult:
        """Reconcile one event. Never raises: failures are logged and reported."""
        owner = self.classify(event.path)
        if owner is None:
            logger.debug("Ignoring event outside watched roots: %s", event.path)
            return SyncResult(event=event, action="ignored")
        root, rel = owner
        dest = self.destination_for(root, rel)

        try:
            if root.kind is LayerKind.PROJECT_OVERRIDE:
                with self.admin_lock:
                    return self._apply(event, root, rel, dest)
            return self._apply(event, root, rel, dest)
        except (AdminStackError, OSError) as exc:
            failure = WatchEventFailure(
                f"Could not sync {event.kind.value} of {event.path}: {exc}",
                context={"path": str(event.path), "kind": event.kind.value, "destination": str(dest)},
            )
            logger.warning("%s", failure)
            return SyncResult(event=event, action="failed", destination=dest, error=str(failure))


__all__ = ["Reconciler", "SyncResult"]
