from __future__ import annotations

from pathlib import Path
from typing import List

from adminstack.core.exceptions import ConfigurationError
from adminstack.core.utils.io import read_json

PACKAGE_MANIFEST = "package.json"


def read_dependencies(project_root: Path) -> List[str]:
    """Return the project's declared dependency names, in declaration order.

    Only the keys of the ``dependencies`` mapping are consulted; version specs
    are ignored.

    Raises:
        ConfigurationError: If ``package.json`` is missing, unparseable, or its
            ``dependencies`` entry is not a mapping.
    """
    path = Path(project_root) / PACKAGE_MANIFEST
    try:
        data = read_json(path)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"No {PACKAGE_MANIFEST} found in {project_root}",
            context={"path": str(path)},
        ) from exc
    except (OSError, ValueError) as exc:
        raise ConfigurationError(
            f"Could not parse {path}: {exc}",
            context={"path": str(path)},
        ) from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object", context={"path": str(path)})

    deps = data.get("dependencies")
    if not isinstance(deps, dict):
        raise ConfigurationError(
            f"{path} has no 'dependencies' mapping",
            context={"path": str(path)},
        )
    return [str(name) for name in deps.keys()]


__all__ = ["PACKAGE_MANIFEST", "read_dependencies"]
