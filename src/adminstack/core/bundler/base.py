from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol


@dataclass(frozen=True)
class BundlerConfig:
    """Everything the bundler needs to compile the merged tree."""

    entry_path: Path
    output_path: Path
    mode: str
    public_path: str = "/"
    globals: Dict[str, str] = field(default_factory=dict)


@dataclass
class CompileResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class DevServerOptions:
    port: int
    host: str = "localhost"
    history_fallback: str = "/"

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.history_fallback}"


class DevServerHandle(Protocol):
    url: str

    def is_running(self) -> bool: ...

    def wait(self) -> int: ...

    def stop(self) -> None: ...


class Bundler(Protocol):
    def compile(self, config: BundlerConfig) -> CompileResult: ...


class DevServer(Protocol):
    def serve(self, config: BundlerConfig, options: DevServerOptions) -> DevServerHandle: ...


__all__ = [
    "BundlerConfig",
    "CompileResult",
    "DevServerOptions",
    "DevServerHandle",
    "Bundler",
    "DevServer",
]
