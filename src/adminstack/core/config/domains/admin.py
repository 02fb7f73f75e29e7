"""Domain-specific configuration for the admin layer stack.

This config controls:
- Which packages form the base and plugin layers
- Where overrides are read from and where the merged tree is written
- The runtime values baked into the generated plugin manifest
"""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class AdminConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "admin"

    @cached_property
    def admin_package(self) -> str:
        return str(self.section.get("adminPackage", "strapi-admin"))

    @cached_property
    def plugin_prefix(self) -> str:
        return str(self.section.get("pluginPrefix", "strapi-plugin-"))

    @cached_property
    def cache_dir(self) -> Path:
        return self.project_root / str(self.section.get("cacheDir", ".cache"))

    @cached_property
    def build_dir(self) -> Path:
        return self.project_root / str(self.section.get("buildDir", "build"))

    @cached_property
    def override_dir(self) -> Path:
        return self.project_root / str(self.section.get("overrideDir", "admin"))

    @cached_property
    def extensions_dir(self) -> Path:
        return self.project_root / str(self.section.get("extensionsDir", "extensions"))

    @cached_property
    def plugin_entry(self) -> Path:
        """Plugin admin entry, relative to the plugin package root."""
        return Path(str(self.section.get("pluginEntry", "admin/src/index.js")))

    @cached_property
    def app_entry(self) -> Path:
        """Bundler entry, relative to the merged tree root."""
        return Path(str(self.section.get("appEntry", "admin/src/app.js")))

    @cached_property
    def manifest_path(self) -> Path:
        """Generated manifest location, relative to the merged tree root."""
        return Path(str(self.section.get("manifestPath", "admin/src/plugins.js")))

    @cached_property
    def layout_file(self) -> Path:
        return Path(str(self.section.get("layoutFile", "config/layout.js")))

    @cached_property
    def mode(self) -> str:
        return str(self.section.get("mode", "host"))

    @cached_property
    def backend_url(self) -> str:
        return str(self.section.get("backendUrl", "/"))

    @cached_property
    def public_path(self) -> str:
        return str(self.section.get("publicPath", "/admin/"))

    @cached_property
    def languages(self) -> tuple[str, ...]:
        langs = self.section.get("languages") or []
        if not isinstance(langs, list):
            return ()
        return tuple(str(lang) for lang in langs if lang)

    @cached_property
    def language_storage_key(self) -> str:
        return str(self.section.get("languageStorageKey", "strapi-admin-language"))

    @cached_property
    def fallback_language(self) -> str:
        return str(self.section.get("fallbackLanguage", "en"))

    @cached_property
    def copy_workers(self) -> int:
        return max(1, int(self.section.get("copyWorkers", 8) or 1))

    @cached_property
    def sync_workers(self) -> int:
        return max(1, int(self.section.get("syncWorkers", 4) or 1))


__all__ = ["AdminConfig"]
