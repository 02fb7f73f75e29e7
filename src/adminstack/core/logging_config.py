from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from adminstack.core.utils.io import ensure_directory

_PACKAGE_LOGGER = "adminstack"
_STREAM_HANDLER: logging.Handler | None = None
_FILE_HANDLER: logging.Handler | None = None
_CONFIGURED_LOG_PATH: str | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, level: str = "INFO", log_path: Optional[Path] = None) -> logging.Logger:
    """Configure the ``adminstack`` logger for CLI use.

    Installs a single stderr handler (and a file handler when ``log_path`` is
    given). Idempotent per-process: repeated calls adjust the level and swap the
    file handler only when the path changes.
    """
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH

    logger = logging.getLogger(_PACKAGE_LOGGER)
    lvl = _level_from_name(level)
    logger.setLevel(lvl)

    if _STREAM_HANDLER is None:
        _STREAM_HANDLER = logging.StreamHandler(sys.stderr)
        _STREAM_HANDLER.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(_STREAM_HANDLER)
    _STREAM_HANDLER.setLevel(lvl)

    if log_path is not None:
        resolved = str(Path(log_path).resolve())
        if resolved != _CONFIGURED_LOG_PATH:
            if _FILE_HANDLER is not None:
                logger.removeHandler(_FILE_HANDLER)
                _FILE_HANDLER.close()
            ensure_directory(Path(resolved).parent)
            fh = logging.FileHandler(resolved, encoding="utf-8")
            fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
            logger.addHandler(fh)
            _FILE_HANDLER = fh
            _CONFIGURED_LOG_PATH = resolved
        _FILE_HANDLER.setLevel(lvl)

    return logger


def reset_logging_for_tests() -> None:
    """Test-only: drop the handlers installed by :func:`configure_logging`."""
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for h in (_STREAM_HANDLER, _FILE_HANDLER):
        if h is not None:
            logger.removeHandler(h)
            h.close()
    logger.setLevel(logging.NOTSET)
    _STREAM_HANDLER = None
    _FILE_HANDLER = None
    _CONFIGURED_LOG_PATH = None


__all__ = ["configure_logging", "reset_logging_for_tests"]
