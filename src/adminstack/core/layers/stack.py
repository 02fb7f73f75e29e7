from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from adminstack.core.config.domains.admin import AdminConfig
from adminstack.core.exceptions import ConfigurationError, PluginDiscoveryWarning
from adminstack.core.packages import find_package_root, read_dependencies, resolve_package_root

logger = logging.getLogger(__name__)

ADMIN_SUBDIR = "admin"
PLUGINS_SUBDIR = "plugins"


class LayerKind(str, Enum):
    BASE = "base"
    PLUGIN = "plugin"
    PROJECT_OVERRIDE = "project-override"
    EXTENSION_OVERRIDE = "extension-override"


@dataclass(frozen=True)
class LayerSpec:
    """A single ranked source of files for the merged tree.

    ``destination`` is relative to the merged tree root.
    """

    id: str
    kind: LayerKind
    source: Path
    destination: Path
    rank: int


@dataclass(frozen=True)
class PluginSpec:
    """An installed plugin package and its optional extension override."""

    name: str
    short_name: str
    package_root: Path
    has_admin_entry: bool
    override_root: Path
    is_overridden: bool

    @property
    def destination(self) -> Path:
        """Plugin directory inside the merged tree (relative)."""
        return Path(PLUGINS_SUBDIR) / self.name

    @property
    def admin_source(self) -> Path:
        return self.package_root / ADMIN_SUBDIR


@dataclass(frozen=True)
class WatchedRoot:
    """An override source directory tagged with where its files land.

    ``fallback`` is the same subtree in the next-lower layer; deleting an
    override path restores ``fallback / <relative path>`` when it exists.
    """

    kind: LayerKind
    source: Path
    destination: Path
    fallback: Path
    plugin: Optional[PluginSpec] = None

    def relative(self, path: Path) -> Optional[Path]:
        """Return ``path`` relative to this root, or None when outside it."""
        try:
            return Path(path).relative_to(self.source)
        except ValueError:
            return None


@dataclass(frozen=True)
class LayerStack:
    """Resolved layers for one project, low → high precedence."""

    project_root: Path
    tree_root: Path
    base_root: Path
    project_override: Path
    has_project_override: bool
    plugins: tuple[PluginSpec, ...]
    layers: tuple[LayerSpec, ...]

    def layer_by_id(self, layer_id: str) -> Optional[LayerSpec]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def plugin_by_name(self, name: str) -> Optional[PluginSpec]:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def overridden_plugins(self) -> tuple[PluginSpec, ...]:
        return tuple(p for p in self.plugins if p.is_overridden)

    def watched_roots(self) -> tuple[WatchedRoot, ...]:
        """Return every override location, whether or not it currently exists.

        Order: project override first, then one root per active plugin.
        """
        roots: List[WatchedRoot] = [
            WatchedRoot(
                kind=LayerKind.PROJECT_OVERRIDE,
                source=self.project_override,
                destination=Path(ADMIN_SUBDIR),
                fallback=self.base_root / ADMIN_SUBDIR,
            )
        ]
        for plugin in self.plugins:
            roots.append(
                WatchedRoot(
                    kind=LayerKind.EXTENSION_OVERRIDE,
                    source=plugin.override_root,
                    destination=plugin.destination / ADMIN_SUBDIR,
                    fallback=plugin.admin_source,
                    plugin=plugin,
                )
            )
        return tuple(roots)


def short_plugin_name(name: str, prefix: str) -> str:
    """Strip the plugin prefix (case-insensitive): ``strapi-plugin-users`` → ``users``."""
    return re.sub(rf"^{re.escape(prefix)}", "", name, flags=re.IGNORECASE)


def _discover_plugin(name: str, *, project_root: Path, cfg: AdminConfig) -> Optional[PluginSpec]:
    try:
        package_root = resolve_package_root(name, project_root)
    except PluginDiscoveryWarning as warn:
        logger.warning("Skipping plugin %s: %s", name, warn)
        return None

    has_entry = (package_root / cfg.plugin_entry).is_file()
    if not has_entry:
        logger.debug("Plugin %s has no admin entry at %s; ignoring", name, cfg.plugin_entry)
        return None

    short = short_plugin_name(name, cfg.plugin_prefix)
    override_root = cfg.extensions_dir / short / ADMIN_SUBDIR
    return PluginSpec(
        name=name,
        short_name=short,
        package_root=package_root,
        has_admin_entry=has_entry,
        override_root=override_root,
        is_overridden=override_root.is_dir(),
    )


def discover_plugins(
    dependencies: Iterable[str],
    *,
    project_root: Path,
    cfg: AdminConfig,
) -> tuple[PluginSpec, ...]:
    """Return active plugins among ``dependencies``, keeping declaration order.

    A dependency listed twice keeps the position and data of its last
    declaration.
    """
    ordered: dict[str, PluginSpec] = {}
    for name in dependencies:
        if not name.startswith(cfg.plugin_prefix):
            continue
        plugin = _discover_plugin(name, project_root=project_root, cfg=cfg)
        if plugin is None:
            continue
        ordered.pop(name, None)
        ordered[name] = plugin
    return tuple(ordered.values())


def resolve_layer_stack(
    project_root: Path,
    dependencies: Optional[Sequence[str]] = None,
    *,
    config: Optional[AdminConfig] = None,
) -> LayerStack:
    """Resolve base, plugin and override layers for a project.

    Args:
        project_root: Project directory holding ``package.json``.
        dependencies: Declared dependency names; read from ``package.json``
            when omitted.
        config: Admin configuration; loaded for ``project_root`` when omitted.

    Raises:
        ConfigurationError: If the package manifest or the base admin package
            is missing or unreadable.
    """
    project_root = Path(project_root).resolve()
    cfg = config or AdminConfig(project_root)
    if dependencies is None:
        dependencies = read_dependencies(project_root)

    base_root = find_package_root(cfg.admin_package, project_root)
    if base_root is None:
        raise ConfigurationError(
            f"Base admin package '{cfg.admin_package}' is not installed",
            context={"package": cfg.admin_package, "project_root": str(project_root)},
        )
    if not (base_root / ADMIN_SUBDIR).is_dir():
        raise ConfigurationError(
            f"Base admin package at {base_root} has no '{ADMIN_SUBDIR}' directory",
            context={"package": cfg.admin_package, "path": str(base_root)},
        )

    plugins = discover_plugins(dependencies, project_root=project_root, cfg=cfg)
    project_override = cfg.override_dir
    has_project_override = project_override.is_dir()

    layers: List[LayerSpec] = [
        LayerSpec(
            id="base",
            kind=LayerKind.BASE,
            source=base_root,
            destination=Path("."),
            rank=0,
        )
    ]
    for plugin in plugins:
        layers.append(
            LayerSpec(
                id=f"plugin:{plugin.name}",
                kind=LayerKind.PLUGIN,
                source=plugin.package_root,
                destination=plugin.destination,
                rank=len(layers),
            )
        )
    if has_project_override:
        layers.append(
            LayerSpec(
                id="project",
                kind=LayerKind.PROJECT_OVERRIDE,
                source=project_override,
                destination=Path(ADMIN_SUBDIR),
                rank=len(layers),
            )
        )
    for plugin in plugins:
        if plugin.is_overridden:
            layers.append(
                LayerSpec(
                    id=f"extension:{plugin.short_name}",
                    kind=LayerKind.EXTENSION_OVERRIDE,
                    source=plugin.override_root,
                    destination=plugin.destination / ADMIN_SUBDIR,
                    rank=len(layers),
                )
            )

    return LayerStack(
        project_root=project_root,
        tree_root=cfg.cache_dir,
        base_root=base_root,
        project_override=project_override,
        has_project_override=has_project_override,
        plugins=plugins,
        layers=tuple(layers),
    )


__all__ = [
    "ADMIN_SUBDIR",
    "PLUGINS_SUBDIR",
    "LayerKind",
    "LayerSpec",
    "PluginSpec",
    "WatchedRoot",
    "LayerStack",
    "short_plugin_name",
    "discover_plugins",
    "resolve_layer_stack",
]
