"""Installed package lookup.

Keep this module dependency-lite: it only reads ``package.json`` files and
walks ``node_modules`` directories, it never mutates anything.
"""

from .manifest import read_dependencies
from .resolver import find_package_root, resolve_package_root

__all__ = ["read_dependencies", "find_package_root", "resolve_package_root"]
