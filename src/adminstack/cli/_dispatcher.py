"""Entry point for the ``adminstack`` command.

Each module in ``adminstack/cli/commands`` is one subcommand: ``build``,
``watch`` and ``materialize`` are found by name at startup.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from functools import lru_cache
from pathlib import Path
from types import ModuleType
from typing import Callable, NamedTuple, Optional

COMMANDS_PACKAGE = "adminstack.cli.commands"


class CommandSpec(NamedTuple):
    module: ModuleType
    summary: str
    register_args: Optional[Callable[[argparse.ArgumentParser], None]]
    run: Optional[Callable[[argparse.Namespace], int]]


@lru_cache(maxsize=1)
def discover_root_commands() -> dict[str, CommandSpec]:
    """Map subcommand name to its module's ``SUMMARY``, ``register_args`` and ``main``."""
    commands: dict[str, CommandSpec] = {}
    commands_dir = Path(__file__).parent / "commands"
    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        try:
            module = importlib.import_module(f"{COMMANDS_PACKAGE}.{item.stem}")
        except ImportError as exc:
            print(f"Warning: skipping command {item.stem}: {exc}", file=sys.stderr)
            continue
        commands[item.stem] = CommandSpec(
            module=module,
            summary=getattr(module, "SUMMARY", item.stem),
            register_args=getattr(module, "register_args", None),
            run=getattr(module, "main", None),
        )
    return commands


def build_parser() -> argparse.ArgumentParser:
    from adminstack import __version__

    parser = argparse.ArgumentParser(
        prog="adminstack",
        description="Assemble, build and serve a layered admin front-end",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")
    for name, spec in discover_root_commands().items():
        sub = subparsers.add_parser(name.replace("_", "-"), help=spec.summary)
        if spec.register_args is not None:
            spec.register_args(sub)
        if spec.run is not None:
            sub.set_defaults(_run=spec.run)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Parse ``argv`` (default ``sys.argv[1:]``), run the command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    run = getattr(args, "_run", None)
    if not args.command or run is None:
        parser.print_help()
        return 0

    try:
        return int(run(args) or 0)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
