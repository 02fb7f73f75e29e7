"""Generated plugin manifest (``admin/src/plugins.js``)."""

from .generator import RuntimeConfig, generate, write_manifest

__all__ = ["RuntimeConfig", "generate", "write_manifest"]
