"""
adminstack - layered admin source tree builder

adminstack merges the base admin package, installed plugin packages and
project overrides into a single working tree that a bundler compiles, and
keeps that tree in sync with override edits during development.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
