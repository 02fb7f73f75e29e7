"""Merged tree materialization."""

from .materializer import CacheMaterializer, materialize
from .tree import MergedTree

__all__ = ["CacheMaterializer", "MergedTree", "materialize"]
