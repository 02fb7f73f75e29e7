"""Configuration loading for adminstack.

``ConfigManager`` merges bundled defaults, project YAML and environment
overrides; the domain classes expose typed views on single sections.
"""
from .manager import ConfigManager
from .base import BaseDomainConfig
from .domains import AdminConfig, BundlerSettings

__all__ = ["ConfigManager", "BaseDomainConfig", "AdminConfig", "BundlerSettings"]
