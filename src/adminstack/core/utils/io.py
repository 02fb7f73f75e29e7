"""File reads and atomic writes shared by the manifest, config and package lookup.

Writes go through a locked temp file that is renamed over the target, so
readers of the merged tree never see a partially written manifest.
"""
from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, TextIO, Union

import yaml

PathLike = Union[str, Path]

_MISSING: object = object()


def ensure_parent_dir(path: Path) -> None:
    """Ensure the parent directory for ``path`` exists."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents if needed and return it.

    Raises:
        NotADirectoryError: ``path`` exists as a regular file.
    """
    path = Path(path)
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Path exists but is not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(
    path: Path,
    write_fn: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
) -> None:
    """Call ``write_fn`` on a temp file beside ``path``, fsync it and rename it over ``path``.

    On failure ``path`` keeps its previous content and the temp file is removed.
    """
    path = Path(path)
    ensure_parent_dir(path)

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            dir=str(path.parent),
            prefix=f".{path.name}.",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            write_fn(f)
            f.flush()
            os.fsync(f.fileno())
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def write_text(path: PathLike, content: str) -> None:
    """Atomically write UTF-8 text to ``path``."""

    def _writer(f: TextIO) -> None:
        f.write(content)

    atomic_write(Path(path), _writer)


def read_json(path: PathLike, *, default: Any = _MISSING) -> Any:
    """Read JSON with a shared lock.

    Missing files and decode errors propagate unless ``default`` is given.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return data
    except (OSError, ValueError):
        if default is _MISSING:
            raise
        return default


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Parse a YAML config file under a shared lock.

    A missing, empty or malformed file yields ``default``; configuration
    loading passes ``raise_on_error=True`` so bad project YAML is reported.
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            data = yaml.safe_load(f)
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return data if data is not None else default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default


def iter_yaml_files(dir_path: Path) -> list[Path]:
    """Return ``*.yaml``/``*.yml`` files in ``dir_path`` in alphabetical order."""
    if not dir_path.is_dir():
        return []
    files = [p for p in dir_path.iterdir() if p.is_file() and p.suffix in {".yaml", ".yml"}]
    return sorted(files, key=lambda p: p.name)


__all__ = [
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    "write_text",
    "read_json",
    "read_yaml",
    "iter_yaml_files",
]
