"""Fake Node project layouts for layer, materializer and watcher tests.

A project looks like::

    <root>/package.json                      declared dependencies
    <root>/node_modules/strapi-admin/admin/  base layer
    <root>/node_modules/<plugin>/admin/      plugin layers
    <root>/admin/                            project override
    <root>/extensions/<short>/admin/         extension overrides
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from adminstack.core.config import AdminConfig, BundlerSettings, ConfigManager
from adminstack.core.layers import LayerStack, resolve_layer_stack

BASE_PACKAGE = "strapi-admin"

DEFAULT_BASE_FILES: Dict[str, str] = {
    "src/app.js": "// base app\nrequire('./plugins');\n",
    "src/index.js": "// base index\n",
    "src/containers/App/index.js": "// base App container\n",
}


def _write_files(root: Path, files: Dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def read_tree(root: Path) -> Dict[str, str]:
    """Map every file under ``root`` (posix relative path) to its text."""
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class FakeProject:
    """Builds a project directory with installed packages and overrides."""

    __test__ = False

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.dependencies: List[str] = []
        self.write_package_json()

    # ---------- package.json ----------

    def write_package_json(self) -> Path:
        path = self.root / "package.json"
        deps = {name: "3.0.0" for name in self.dependencies}
        path.write_text(json.dumps({"name": "fake-project", "dependencies": deps}, indent=2), encoding="utf-8")
        return path

    def declare(self, *names: str) -> None:
        for name in names:
            if name in self.dependencies:
                self.dependencies.remove(name)
            self.dependencies.append(name)
        self.write_package_json()

    # ---------- installed packages ----------

    def package_dir(self, name: str) -> Path:
        return self.root / "node_modules" / name

    def install_package(self, name: str, admin_files: Optional[Dict[str, str]] = None) -> Path:
        pkg = self.package_dir(name)
        pkg.mkdir(parents=True, exist_ok=True)
        (pkg / "package.json").write_text(json.dumps({"name": name, "version": "3.0.0"}), encoding="utf-8")
        if admin_files is not None:
            _write_files(pkg / "admin", admin_files)
        return pkg

    def install_base(
        self,
        files: Optional[Dict[str, str]] = None,
        *,
        layout: Optional[str] = None,
    ) -> Path:
        pkg = self.install_package(BASE_PACKAGE, dict(files or DEFAULT_BASE_FILES))
        self.declare(BASE_PACKAGE)
        if layout is not None:
            _write_files(pkg, {"config/layout.js": layout})
        return pkg

    def add_plugin(
        self,
        name: str,
        files: Optional[Dict[str, str]] = None,
        *,
        with_entry: bool = True,
        declare: bool = True,
        layout: Optional[str] = None,
    ) -> Path:
        admin_files = dict(files or {})
        if with_entry:
            admin_files.setdefault("src/index.js", f"// {name} entry\n")
        else:
            admin_files.pop("src/index.js", None)
            admin_files.setdefault("src/components/Widget.js", f"// {name} widget\n")
        pkg = self.install_package(name, admin_files)
        if layout is not None:
            _write_files(pkg, {"config/layout.js": layout})
        if declare:
            self.declare(name)
        return pkg

    # ---------- overrides ----------

    def add_override(self, rel: str, content: str) -> Path:
        path = self.root / "admin" / rel
        _write_files(self.root / "admin", {rel: content})
        return path

    def add_extension(self, short_name: str, rel: str, content: str) -> Path:
        root = self.root / "extensions" / short_name / "admin"
        _write_files(root, {rel: content})
        return root / rel

    def add_config(self, filename: str, content: str) -> Path:
        path = self.root / ".adminstack" / "config" / filename
        _write_files(path.parent, {filename: content})
        return path

    # ---------- resolved views ----------

    @property
    def cache(self) -> Path:
        return self.root / ".cache"

    def admin_config(self) -> AdminConfig:
        return AdminConfig(self.root, config=ConfigManager(self.root).load_config())

    def bundler_settings(self) -> BundlerSettings:
        return BundlerSettings(self.root, config=ConfigManager(self.root).load_config())

    def stack(self) -> LayerStack:
        return resolve_layer_stack(self.root, config=self.admin_config())

    def cache_files(self) -> Dict[str, str]:
        return read_tree(self.cache)


__all__ = ["FakeProject", "read_tree", "BASE_PACKAGE", "DEFAULT_BASE_FILES"]
