from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from adminstack.core.layers.stack import ADMIN_SUBDIR, PLUGINS_SUBDIR
from adminstack.core.utils.fs import iter_relative_files


@dataclass(frozen=True)
class MergedTree:
    """Handle on the materialized directory the bundler compiles from."""

    root: Path
    entry_rel: Path
    manifest_rel: Path

    @property
    def admin_dir(self) -> Path:
        return self.root / ADMIN_SUBDIR

    @property
    def plugins_dir(self) -> Path:
        return self.root / PLUGINS_SUBDIR

    @property
    def entry_path(self) -> Path:
        return self.root / self.entry_rel

    @property
    def manifest_path(self) -> Path:
        return self.root / self.manifest_rel

    def plugin_dir(self, name: str) -> Path:
        return self.plugins_dir / name

    def relative_paths(self) -> List[Path]:
        """Snapshot of every file in the tree, relative to ``root``, sorted."""
        return list(iter_relative_files(self.root))


__all__ = ["MergedTree"]
