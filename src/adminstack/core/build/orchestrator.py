"""One-shot builds and development sessions over the merged tree."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from adminstack.core.bundler import (
    Bundler,
    BundlerConfig,
    CommandBundler,
    CommandDevServer,
    DevServer,
    DevServerHandle,
    DevServerOptions,
)
from adminstack.core.config import AdminConfig, BundlerSettings, ConfigManager
from adminstack.core.exceptions import CompileError
from adminstack.core.layers import LayerStack, resolve_layer_stack
from adminstack.core.manifest import RuntimeConfig
from adminstack.core.materialize import CacheMaterializer, MergedTree
from adminstack.core.sync import LiveSyncWatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Per-invocation build settings.

    Unset fields fall back to the `admin` config section (`publicPath`,
    `backendUrl`, `mode`).
    """

    public_path: Optional[str] = None
    backend_url: Optional[str] = None
    mode: Optional[str] = None


@dataclass
class BuildResult:
    stats: Optional[Dict[str, Any]] = None
    warnings: List[str] = field(default_factory=list)
    tree: Optional[MergedTree] = None
    public_path: Optional[str] = None


def _load_configs(project_root: Path, config: Optional[Dict[str, Any]]) -> tuple[AdminConfig, BundlerSettings]:
    raw = config if config is not None else ConfigManager(project_root).load_config()
    return AdminConfig(project_root, config=raw), BundlerSettings(project_root, config=raw)


def _resolve_options(admin_cfg: AdminConfig, options: Optional[BuildOptions]) -> BuildOptions:
    options = options or BuildOptions()
    if not options.public_path:
        options = replace(options, public_path=admin_cfg.public_path)
    return options


def _bundler_globals(runtime: RuntimeConfig, options: BuildOptions) -> Dict[str, str]:
    return {
        "backend_url": runtime.backend_url,
        "mode": runtime.mode,
        "public_path": options.public_path,
    }


def _prepare(
    project_root: Path,
    admin_cfg: AdminConfig,
    options: BuildOptions,
) -> tuple[RuntimeConfig, LayerStack, MergedTree]:
    runtime = RuntimeConfig.from_config(admin_cfg, mode=options.mode, backend_url=options.backend_url)
    stack = resolve_layer_stack(project_root, config=admin_cfg)
    tree = CacheMaterializer(admin_cfg, runtime).materialize(stack)
    return runtime, stack, tree


def build_once(
    project_root: Path,
    env: str,
    options: Optional[BuildOptions] = None,
    *,
    bundler: Optional[Bundler] = None,
    config: Optional[Dict[str, Any]] = None,
) -> BuildResult:
    """Materialize the merged tree and compile it into the build directory.

    Args:
        project_root: Project directory holding ``package.json``.
        env: Bundler mode, e.g. ``production`` or ``development``.
        options: Public path and runtime overrides.
        bundler: Defaults to the configured command bundler.
        config: Pre-loaded configuration; loaded from the project when None.

    Raises:
        ConfigurationError: Before any compilation, for unusable project setup.
        CopyFailure: If the base layer cannot be copied.
        CompileError: If the bundler reports one or more errors. Only the first
            is surfaced; the count is in ``context["error_count"]``.
    """
    project_root = Path(project_root).resolve()
    admin_cfg, bundler_cfg = _load_configs(project_root, config)
    options = _resolve_options(admin_cfg, options)
    runtime, _, tree = _prepare(project_root, admin_cfg, options)

    bundler = bundler or CommandBundler(bundler_cfg, cwd=project_root)
    bundle_config = BundlerConfig(
        entry_path=tree.entry_path,
        output_path=admin_cfg.build_dir,
        mode=env,
        public_path=options.public_path,
        globals=_bundler_globals(runtime, options),
    )
    result = bundler.compile(bundle_config)
    if result.errors:
        raise CompileError(
            result.errors[0],
            context={"error_count": len(result.errors), "entry": str(tree.entry_path)},
        )
    for warning in result.warnings:
        logger.warning("Bundler warning: %s", warning)
    logger.info("Build written to %s", admin_cfg.build_dir)
    return BuildResult(
        stats=result.stats,
        warnings=list(result.warnings),
        tree=tree,
        public_path=options.public_path,
    )


class DevSession:
    """A running dev server paired with the override watcher."""

    def __init__(self, server: DevServerHandle, watcher: LiveSyncWatcher, tree: MergedTree) -> None:
        self.server = server
        self.watcher = watcher
        self.tree = tree
        self._closed = threading.Event()

    @property
    def url(self) -> str:
        return self.server.url

    def wait(self) -> None:
        """Block until the dev server exits or the session is closed.

        KeyboardInterrupt propagates to the caller after closing the session.
        """
        try:
            while not self._closed.is_set():
                if not self.server.is_running():
                    logger.warning("Dev server stopped")
                    break
                self._closed.wait(0.5)
        finally:
            self.close()

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self.watcher.stop()
        self.server.stop()

    def __enter__(self) -> "DevSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def watch(
    project_root: Path,
    port: int,
    options: Optional[BuildOptions] = None,
    *,
    dev_server: Optional[DevServer] = None,
    config: Optional[Dict[str, Any]] = None,
) -> DevSession:
    """Materialize, start the dev server, then start watching overrides.

    Raises:
        ConfigurationError: For unusable project setup.
        DevServerError: If the dev server cannot start or bind. Not retried.
    """
    project_root = Path(project_root).resolve()
    admin_cfg, bundler_cfg = _load_configs(project_root, config)
    options = _resolve_options(admin_cfg, options)
    runtime, stack, tree = _prepare(project_root, admin_cfg, options)

    dev_server = dev_server or CommandDevServer(bundler_cfg, cwd=project_root)
    bundle_config = BundlerConfig(
        entry_path=tree.entry_path,
        output_path=admin_cfg.build_dir,
        mode="development",
        public_path=options.public_path,
        globals=_bundler_globals(runtime, options),
    )
    server = dev_server.serve(
        bundle_config,
        DevServerOptions(port=port, host=bundler_cfg.host, history_fallback=options.public_path),
    )

    watcher = LiveSyncWatcher(stack, tree, runtime, config=admin_cfg)
    try:
        watcher.start()
    except Exception:
        server.stop()
        raise
    return DevSession(server, watcher, tree)


__all__ = ["BuildOptions", "BuildResult", "DevSession", "build_once", "watch"]
