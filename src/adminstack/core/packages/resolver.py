from __future__ import annotations

from pathlib import Path
from typing import Optional

from adminstack.core.exceptions import PluginDiscoveryWarning

from .manifest import PACKAGE_MANIFEST


def find_package_root(name: str, start: Path) -> Optional[Path]:
    """Locate an installed package the way Node resolves ``<name>/package.json``.

    Walks from ``start`` up to the filesystem root, checking
    ``<dir>/node_modules/<name>/package.json`` at each level. Scoped names
    (``@scope/pkg``) work unchanged.

    Returns:
        The package directory, or None when no installation is found.
    """
    current = Path(start).resolve()
    for directory in (current, *current.parents):
        if directory.name == "node_modules":
            continue
        candidate = directory / "node_modules" / name
        if (candidate / PACKAGE_MANIFEST).is_file():
            return candidate.resolve()
    return None


def resolve_package_root(name: str, start: Path) -> Path:
    """Like :func:`find_package_root` but raises when the package is missing.

    Raises:
        PluginDiscoveryWarning: If the package is not installed.
    """
    root = find_package_root(name, start)
    if root is None:
        raise PluginDiscoveryWarning(
            f"Package '{name}' is not installed (searched node_modules from {start})",
            context={"package": name, "start": str(start)},
        )
    return root


__all__ = ["find_package_root", "resolve_package_root"]
