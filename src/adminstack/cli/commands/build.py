"""adminstack build command.

SUMMARY: Materialize the merged admin tree and compile it once.
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
from adminstack.core.build import BuildOptions, build_once
from adminstack.core.exceptions import AdminStackError

SUMMARY = "Build the admin front-end into <project>/build"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--env",
        default="production",
        choices=["production", "development"],
        help="Bundler mode (default: production)",
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
        result = build_once(project_root, args.env, options)
    except AdminStackError as exc:
        formatter.error(exc, error_code="build_failed")
        return 1

    formatter.success(
        {
            "env": args.env,
            "publicPath": result.public_path,
            "entry": str(result.tree.entry_path) if result.tree else None,
            "warnings": result.warnings,
        },
        f"Admin built ({len(result.warnings)} warning(s))",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
