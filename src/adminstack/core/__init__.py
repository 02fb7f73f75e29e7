"""adminstack core library: layer resolution, materialization, live sync and builds."""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
