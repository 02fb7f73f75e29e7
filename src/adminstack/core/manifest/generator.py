"""Plugin manifest generation.

The manifest is the module the admin app imports to learn which plugins are
active. It is a pure function of the active plugin list and the runtime
configuration: identical inputs always yield byte-identical text.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Protocol

from jinja2 import Environment, StrictUndefined, Template

from adminstack.core.config.domains.admin import AdminConfig
from adminstack.core.utils.io import write_text
from adminstack.data import get_data_path

logger = logging.getLogger(__name__)

HEADER = "// Generated by adminstack. Changes are overwritten on the next rebuild."
TEMPLATE_NAME = "plugins.js.j2"

INJECTION_HELPERS = (
    ("injectReducer", "./utils/injectReducer", "default"),
    ("injectSaga", "./utils/injectSaga", "default"),
    ("useInjectReducer", "./utils/injectReducer", "useInjectReducer"),
    ("useInjectSaga", "./utils/injectSaga", "useInjectSaga"),
)


class ManifestPlugin(Protocol):
    name: str
    short_name: str


@dataclass(frozen=True)
class RuntimeConfig:
    """Values baked into the manifest's runtime bootstrap."""

    mode: str = "host"
    backend_url: str = "/"
    languages: tuple[str, ...] = field(default_factory=tuple)
    language_storage_key: str = "strapi-admin-language"
    fallback_language: str = "en"

    @classmethod
    def from_config(
        cls,
        cfg: AdminConfig,
        *,
        mode: Optional[str] = None,
        backend_url: Optional[str] = None,
    ) -> "RuntimeConfig":
        base = cls(
            mode=cfg.mode,
            backend_url=cfg.backend_url,
            languages=cfg.languages,
            language_storage_key=cfg.language_storage_key,
            fallback_language=cfg.fallback_language,
        )
        if mode:
            base = replace(base, mode=mode)
        if backend_url:
            base = replace(base, backend_url=backend_url)
        return base


def _js(value: object) -> str:
    """Render a JSON-compatible value as a JavaScript literal."""
    return json.dumps(value, ensure_ascii=True)


def _backend_url_expr(url: str) -> str:
    # A root-relative backend means "same origin as the admin page".
    if url == "/":
        return "window.location.origin"
    return _js(url)


def _plugin_entries(plugins: Iterable[ManifestPlugin]) -> dict[str, str]:
    """Map short name → plugin package name; later plugins replace earlier ones."""
    entries: dict[str, str] = {}
    for plugin in plugins:
        if plugin.short_name in entries:
            logger.warning(
                "Plugin %s shadows an earlier plugin exposed as '%s'",
                plugin.name,
                plugin.short_name,
            )
        entries[plugin.short_name] = plugin.name
    return entries


@lru_cache(maxsize=1)
def _template() -> Template:
    env = Environment(
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["js"] = _js
    source = get_data_path("templates", TEMPLATE_NAME).read_text(encoding="utf-8")
    return env.from_string(source)


def generate(
    plugins: Iterable[ManifestPlugin],
    runtime_config: RuntimeConfig,
    *,
    plugins_import_root: str = "../../plugins",
) -> str:
    """Return the manifest source text.

    Args:
        plugins: Active plugins in resolver order.
        runtime_config: Bootstrap values exposed as ``runtimeConfig``.
        plugins_import_root: Import path from the manifest to the merged tree's
            ``plugins`` directory.
    """
    entries = [
        (short_name, f"{plugins_import_root}/{name}/admin/src")
        for short_name, name in _plugin_entries(plugins).items()
    ]
    return _template().render(
        header=HEADER,
        helpers=INJECTION_HELPERS,
        runtime=runtime_config,
        backend_url=_backend_url_expr(runtime_config.backend_url),
        entries=entries,
    )


def write_manifest(
    destination: Path,
    plugins: Iterable[ManifestPlugin],
    runtime_config: RuntimeConfig,
) -> Path:
    """Generate the manifest and write it atomically to ``destination``."""
    destination = Path(destination)
    write_text(destination, generate(plugins, runtime_config))
    logger.debug("Wrote plugin manifest %s", destination)
    return destination


__all__ = ["RuntimeConfig", "generate", "write_manifest"]
