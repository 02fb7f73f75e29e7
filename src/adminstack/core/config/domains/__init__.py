"""Typed accessors for individual configuration sections."""
from .admin import AdminConfig
from .bundler import BundlerSettings

__all__ = ["AdminConfig", "BundlerSettings"]
