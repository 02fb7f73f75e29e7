"""
adminstack CLI package.

Commands are auto-discovered from ``cli/commands/*.py``; each module exposes
``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._output import OutputFormatter
from ._args import (
    add_json_flag,
    add_dir_flag,
    add_verbose_flag,
    add_log_file_arg,
    add_public_path_arg,
    add_backend_url_arg,
    add_standard_flags,
)
from ._utils import get_project_root, setup_logging

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_dir_flag",
    "add_verbose_flag",
    "add_log_file_arg",
    "add_public_path_arg",
    "add_backend_url_arg",
    "add_standard_flags",
    "get_project_root",
    "setup_logging",
]
