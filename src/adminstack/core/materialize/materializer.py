"""Full materialization of the merged tree.

Steps run in ascending layer precedence; a later step overwrites what an
earlier one wrote at the same path:

1. empty the merged tree root
2. copy the base admin package
3. copy every active plugin (concurrently)
4. write the plugin manifest
5. copy the project override over ``admin/``
6. copy every extension override over its plugin (concurrently)

Plugin and override copies fan out on a thread pool; each step joins before the
next one starts.
"""
from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, TypeVar

from adminstack.core.config.domains.admin import AdminConfig
from adminstack.core.exceptions import CopyFailure
from adminstack.core.layers.stack import ADMIN_SUBDIR, LayerStack, PluginSpec, resolve_layer_stack
from adminstack.core.manifest import RuntimeConfig, write_manifest
from adminstack.core.packages.manifest import PACKAGE_MANIFEST
from adminstack.core.utils.fs import copy_path, empty_directory

from .tree import MergedTree

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheMaterializer:
    """Builds the merged tree for one project from an empty state."""

    def __init__(
        self,
        config: AdminConfig,
        runtime_config: Optional[RuntimeConfig] = None,
    ) -> None:
        self.config = config
        self.runtime_config = runtime_config or RuntimeConfig.from_config(config)

    def tree_for(self, stack: LayerStack) -> MergedTree:
        return MergedTree(
            root=stack.tree_root,
            entry_rel=self.config.app_entry,
            manifest_rel=self.config.manifest_path,
        )

    def _fan_out(self, fn: Callable[[T], bool], items: Iterable[T]) -> List[bool]:
        items = list(items)
        if not items:
            return []
        workers = min(self.config.copy_workers, len(items))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(fn, items))

    def copy_base(self, stack: LayerStack, tree: MergedTree) -> None:
        copy_path(stack.base_root / ADMIN_SUBDIR, tree.admin_dir)
        layout = stack.base_root / self.config.layout_file
        if layout.is_file():
            copy_path(layout, tree.root / self.config.layout_file)

    def copy_plugin(self, plugin: PluginSpec, tree: MergedTree) -> bool:
        dest = tree.plugin_dir(plugin.name)
        try:
            copy_path(plugin.admin_source, dest / ADMIN_SUBDIR)
            layout = plugin.package_root / self.config.layout_file
            if layout.is_file():
                copy_path(layout, dest / self.config.layout_file)
            copy_path(plugin.package_root / PACKAGE_MANIFEST, dest / PACKAGE_MANIFEST)
        except CopyFailure as exc:
            logger.warning("Skipping plugin %s: %s", plugin.name, exc)
            return False
        return True

    def copy_project_override(self, stack: LayerStack, tree: MergedTree) -> bool:
        try:
            copy_path(stack.project_override, tree.admin_dir)
        except CopyFailure as exc:
            logger.warning("Could not apply project admin override: %s", exc)
            return False
        return True

    def copy_extension_override(self, plugin: PluginSpec, tree: MergedTree) -> bool:
        try:
            copy_path(plugin.override_root, tree.plugin_dir(plugin.name) / ADMIN_SUBDIR)
        except CopyFailure as exc:
            logger.warning("Could not apply extension override for %s: %s", plugin.name, exc)
            return False
        return True

    def write_manifest(self, stack: LayerStack, tree: MergedTree) -> Path:
        try:
            return write_manifest(tree.manifest_path, stack.plugins, self.runtime_config)
        except OSError as exc:
            raise CopyFailure(
                f"Failed to write plugin manifest {tree.manifest_path}: {exc}",
                context={"destination": str(tree.manifest_path)},
            ) from exc

    def materialize(self, stack: LayerStack) -> MergedTree:
        """Rebuild the merged tree for ``stack``.

        Raises:
            CopyFailure: If the tree root, base layer or manifest cannot be written.
        """
        tree = self.tree_for(stack)
        logger.info("Building admin tree in %s", tree.root)

        empty_directory(tree.root)
        self.copy_base(stack, tree)

        copied = self._fan_out(lambda p: self.copy_plugin(p, tree), stack.plugins)
        logger.debug("Copied %d/%d plugin(s)", sum(copied), len(stack.plugins))

        self.write_manifest(stack, tree)

        if stack.has_project_override:
            self.copy_project_override(stack, tree)

        self._fan_out(lambda p: self.copy_extension_override(p, tree), stack.overridden_plugins())
        return tree


def materialize(
    project_root: Path,
    *,
    config: Optional[AdminConfig] = None,
    runtime_config: Optional[RuntimeConfig] = None,
    stack: Optional[LayerStack] = None,
) -> MergedTree:
    """Resolve layers for ``project_root`` and rebuild its merged tree.

    Idempotent: for an unchanged project the resulting tree is byte-identical.

    Raises:
        ConfigurationError: If the project manifest or base package is missing.
        CopyFailure: If the base layer cannot be copied.
    """
    cfg = config or AdminConfig(Path(project_root))
    if stack is None:
        stack = resolve_layer_stack(project_root, config=cfg)
    return CacheMaterializer(cfg, runtime_config).materialize(stack)


__all__ = ["CacheMaterializer", "materialize"]
