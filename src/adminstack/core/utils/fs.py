"""Filesystem operations used to build and mutate the merged tree.

Every mutation is whole-file: files are copied to a temporary sibling and
renamed into place, so a failed copy never leaves a half-written file behind.
Failures surface as :class:`CopyFailure` with the source/destination in its
context.
"""
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from adminstack.core.exceptions import CopyFailure
from adminstack.core.utils.io import ensure_parent_dir


def path_exists(path: Path) -> bool:
    """Return True when ``path`` exists (files, directories or symlink targets)."""
    return Path(path).exists()


def _copy_file_atomic(src: str, dst: str) -> str:
    dst_path = Path(dst)
    ensure_parent_dir(dst_path)
    tmp_path: Optional[str] = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=f".{dst_path.name}.", dir=str(dst_path.parent))
        os.close(fd)
        shutil.copy2(src, tmp_path)
        os.replace(tmp_path, dst)
        tmp_path = None
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
    return dst


def copy_path(src: Path, dest: Path) -> None:
    """Copy a file or directory tree from ``src`` onto ``dest``.

    Directories are merged into an existing destination; files already present
    at ``dest`` are overwritten. Files in ``dest`` that ``src`` does not have
    are left untouched.

    Raises:
        CopyFailure: If ``src`` is missing or any copy step fails.
    """
    src = Path(src)
    dest = Path(dest)
    try:
        if src.is_dir():
            if dest.exists() and not dest.is_dir():
                dest.unlink()
            shutil.copytree(
                src,
                dest,
                copy_function=_copy_file_atomic,
                dirs_exist_ok=True,
            )
        elif src.exists():
            if dest.is_dir():
                shutil.rmtree(dest)
            _copy_file_atomic(str(src), str(dest))
        else:
            raise FileNotFoundError(f"Copy source not found: {src}")
    except (OSError, shutil.Error) as exc:
        raise CopyFailure(
            f"Failed to copy {src} -> {dest}: {exc}",
            context={"source": str(src), "destination": str(dest)},
        ) from exc


def remove_path(path: Path) -> bool:
    """Remove a file or directory tree. Missing paths are not an error.

    Returns:
        True if something was removed.
    """
    path = Path(path)
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
            return True
        if path.exists() or path.is_symlink():
            path.unlink()
            return True
        return False
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise CopyFailure(
            f"Failed to remove {path}: {exc}",
            context={"destination": str(path)},
        ) from exc


def empty_directory(path: Path) -> Path:
    """Remove everything under ``path`` and recreate it empty."""
    path = Path(path)
    remove_path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CopyFailure(
            f"Failed to create directory {path}: {exc}",
            context={"destination": str(path)},
        ) from exc
    return path


def iter_relative_files(root: Path) -> Iterator[Path]:
    """Yield every file under ``root`` as a path relative to ``root``, sorted."""
    root = Path(root)
    if not root.is_dir():
        return
    for item in sorted(root.rglob("*")):
        if item.is_file():
            yield item.relative_to(root)


__all__ = [
    "path_exists",
    "copy_path",
    "remove_path",
    "empty_directory",
    "iter_relative_files",
]
