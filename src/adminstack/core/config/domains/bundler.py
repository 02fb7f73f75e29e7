"""Domain-specific configuration for the external bundler and dev server."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class BundlerSettings(BaseDomainConfig):
    def _config_section(self) -> str:
        return "bundler"

    @cached_property
    def build_command(self) -> list[str]:
        return [str(part) for part in (self.section.get("buildCommand") or [])]

    @cached_property
    def serve_command(self) -> list[str]:
        return [str(part) for part in (self.section.get("serveCommand") or [])]

    @cached_property
    def host(self) -> str:
        return str(self.section.get("host", "localhost"))

    @cached_property
    def startup_timeout_seconds(self) -> float:
        return float(self.section.get("startupTimeoutSeconds", 60))

    @cached_property
    def shutdown_timeout_seconds(self) -> float:
        return float(self.section.get("shutdownTimeoutSeconds", 5))


__all__ = ["BundlerSettings"]
