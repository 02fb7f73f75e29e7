"""adminstack materialize command.

SUMMARY: Rebuild the merged admin tree without running the bundler.
"""

from __future__ import annotations

import argparse
import sys

from adminstack.cli import (
    OutputFormatter,
    add_backend_url_arg,
    add_standard_flags,
    get_project_root,
    setup_logging,
)
from adminstack.core.config import AdminConfig
from adminstack.core.exceptions import AdminStackError
from adminstack.core.layers import resolve_layer_stack
from adminstack.core.manifest import RuntimeConfig
from adminstack.core.materialize import CacheMaterializer

SUMMARY = "Rebuild the merged admin tree (.cache) without compiling it"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_backend_url_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    setup_logging(args)
    project_root = get_project_root(args)

    try:
        cfg = AdminConfig(project_root)
        runtime = RuntimeConfig.from_config(cfg, backend_url=getattr(args, "backend_url", None))
        stack = resolve_layer_stack(project_root, config=cfg)
        tree = CacheMaterializer(cfg, runtime).materialize(stack)
    except AdminStackError as exc:
        formatter.error(exc, error_code="materialize_failed")
        return 1

    plugins = [p.name for p in stack.plugins]
    formatter.success(
        {
            "tree": str(tree.root),
            "entry": str(tree.entry_path),
            "plugins": plugins,
            "overrides": [p.name for p in stack.overridden_plugins()],
            "projectOverride": stack.has_project_override,
        },
        f"Merged tree written to {tree.root} ({len(plugins)} plugin(s))",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
