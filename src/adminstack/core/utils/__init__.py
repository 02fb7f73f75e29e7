"""Shared helpers: file I/O, merged-tree filesystem operations, config merging."""
