"""Layer stack resolution for the admin merged tree.

Layers (low → high precedence):
  base admin package → plugin packages (declaration order)
  → project override (<project>/admin)
  → extension overrides (<project>/extensions/<short-name>/admin)

Later layers win on path collision. Override roots are tagged once here with
their destination and fallback so the watcher never re-derives them from path
strings.
"""

from .stack import (
    LayerKind,
    LayerSpec,
    LayerStack,
    PluginSpec,
    WatchedRoot,
    resolve_layer_stack,
    short_plugin_name,
)

__all__ = [
    "LayerKind",
    "LayerSpec",
    "LayerStack",
    "PluginSpec",
    "WatchedRoot",
    "resolve_layer_stack",
    "short_plugin_name",
]
