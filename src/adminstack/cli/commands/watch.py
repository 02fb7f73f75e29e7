"""adminstack watch command.

SUMMARY: Serve the admin in development mode and sync override edits live.
"""

from __future__ import annotations

import argparse
import sys

from adminstack.cli import (
    OutputFormatter,
    add_backend_url_arg,
    add_public_path_arg,
    add_standard_flags,
    get_project_root,
    setup_logging,
)
from adminstack.core.build import BuildOptions, watch
from adminstack.core.exceptions import AdminStackError

SUMMARY = "Start the dev server and watch admin overrides"

DEFAULT_PORT = 8000


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Dev server port (default: {DEFAULT_PORT})",
    )
    add_public_path_arg(parser)
    add_backend_url_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    setup_logging(args)
    project_root = get_project_root(args)

    options = BuildOptions(
        public_path=args.public_path,
        backend_url=getattr(args, "backend_url", None),
    )
    try:
        session = watch(project_root, args.port, options)
    except AdminStackError as exc:
        formatter.error(exc, error_code="watch_failed")
        return 1

    formatter.success(
        {"url": session.url, "tree": str(session.tree.root)},
        f"Admin dev server running at {session.url} (Ctrl+C to stop)",
        status="running",
    )
    try:
        session.wait()
    except KeyboardInterrupt:
        formatter.text("Stopping")
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
