from __future__ import annotations

from typing import Any, Dict, Mapping


class AdminStackError(Exception):
    """Base exception for adminstack."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(AdminStackError, ValueError):
    """Raised when the project manifest, base layer or adminstack config is unusable.

    Always fatal: raised before any bundler invocation.
    """

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        AdminStackError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class PluginDiscoveryWarning(AdminStackError):
    """Raised when a single plugin cannot be resolved; callers log and skip it."""


class CopyFailure(AdminStackError, OSError):
    """Raised when a copy or remove operation inside the merged tree fails."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        AdminStackError.__init__(self, message, context=context)
        OSError.__init__(self, message)


class CompileError(AdminStackError):
    """Raised when the bundler reports errors.

    Only the first reported error is carried in the message; the total count
    is kept in ``context["error_count"]``.
    """


class DevServerError(AdminStackError, RuntimeError):
    """Raised when the development server cannot be started or bound."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        AdminStackError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class WatchEventFailure(AdminStackError):
    """Raised when one incremental sync step fails; the watcher logs it and continues."""


__all__ = [
    "AdminStackError",
    "ConfigurationError",
    "PluginDiscoveryWarning",
    "CopyFailure",
    "CompileError",
    "DevServerError",
    "WatchEventFailure",
]
