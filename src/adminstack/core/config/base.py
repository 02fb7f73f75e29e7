"""Base class for domain-specific configuration accessors.

Provides a standardized pattern for all domain configs with:
- Consistent project_root handling
- Type-safe section access
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .manager import ConfigManager


class BaseDomainConfig(ABC):
    """Abstract base class for domain-specific configuration accessors.

    Usage:
        class MyConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "mySection"

            @cached_property
            def my_setting(self) -> str:
                return self.section.get("mySetting", "default")

        cfg = MyConfig(project_root=Path("/path/to/project"))
        print(cfg.my_setting)
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize domain config.

        Args:
            project_root: Project root path. Defaults to the current directory.
            config: Already-loaded configuration; loaded via ConfigManager if None.
        """
        self.project_root = Path(project_root or Path.cwd()).resolve()
        if config is None:
            config = ConfigManager(self.project_root).load_config()
        self._config = config

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this domain."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        """Get this domain's configuration section (empty dict when absent)."""
        return self._config.get(self._config_section(), {}) or {}

    @property
    def raw(self) -> Dict[str, Any]:
        """The full merged configuration this accessor was built from."""
        return self._config


__all__ = ["BaseDomainConfig"]
