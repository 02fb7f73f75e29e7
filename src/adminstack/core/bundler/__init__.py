"""Boundary to the external bundler and its development server."""
from __future__ import annotations

from .base import (
    Bundler,
    BundlerConfig,
    CompileResult,
    DevServer,
    DevServerHandle,
    DevServerOptions,
)
from .command import CommandBundler, CommandDevServer, CommandDevServerHandle

__all__ = [
    "Bundler",
    "BundlerConfig",
    "CompileResult",
    "DevServer",
    "DevServerHandle",
    "DevServerOptions",
    "CommandBundler",
    "CommandDevServer",
    "CommandDevServerHandle",
]
