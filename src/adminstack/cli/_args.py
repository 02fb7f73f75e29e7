"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_dir_flag(parser: argparse.ArgumentParser) -> None:
    """Add --dir flag for the project directory.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--dir",
        dest="project_dir",
        type=str,
        help="Project directory (default: current directory)",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )


def add_log_file_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write log records to this file",
    )


def add_public_path_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--public-path",
        default=None,
        help="URL path the admin is served under (default: admin.publicPath, /admin/)",
    )


def add_backend_url_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--backend-url",
        default=None,
        help="Backend URL baked into the admin (default: from config)",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add the flags every adminstack command accepts: --dir, --json, --verbose, --log-file."""
    add_dir_flag(parser)
    add_json_flag(parser)
    add_verbose_flag(parser)
    add_log_file_arg(parser)


__all__ = [
    "add_json_flag",
    "add_dir_flag",
    "add_verbose_flag",
    "add_log_file_arg",
    "add_public_path_arg",
    "add_backend_url_arg",
    "add_standard_flags",
]
