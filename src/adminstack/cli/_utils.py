"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path

from adminstack.core.logging_config import configure_logging


def get_project_root(args: argparse.Namespace) -> Path:
    """Project directory from ``--dir``, else the current directory."""
    project_dir = getattr(args, "project_dir", None)
    if project_dir:
        return Path(project_dir).resolve()
    return Path.cwd().resolve()


def setup_logging(args: argparse.Namespace) -> None:
    """Configure the package logger from ``--verbose`` and ``--log-file``.

    JSON mode keeps info chatter off stderr so the error payload stays parseable.
    """
    if getattr(args, "verbose", False):
        level = "DEBUG"
    elif getattr(args, "json", False):
        level = "WARNING"
    else:
        level = "INFO"
    log_file = getattr(args, "log_file", None)
    configure_logging(level=level, log_path=Path(log_file) if log_file else None)


__all__ = ["get_project_root", "setup_logging"]
