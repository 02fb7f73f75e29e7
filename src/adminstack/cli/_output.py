"""CLI output formatting.

Every command supports a text mode for people and a JSON mode for tools.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional, Union

from adminstack.core.exceptions import AdminStackError


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Output success result.

        Args:
            data: Result data dictionary
            message: Human-readable success message (used in text mode)
            status: Status string for JSON output
        """
        if self.json_mode:
            output = {"status": status, **data}
            print(json.dumps(output, indent=self.indent, default=str))
        else:
            print(message)

    def error(
        self,
        error: Union[Exception, str],
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output one consolidated error to stderr.

        ``AdminStackError`` instances contribute their class name as the error
        code and their context to the JSON payload.
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            if isinstance(error, AdminStackError):
                payload = error.to_json_error()
                output["error"] = payload["code"]
                if payload["context"]:
                    output["context"] = payload["context"]
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def text(self, message: str) -> None:
        if not self.json_mode:
            print(message)


__all__ = ["OutputFormatter"]
