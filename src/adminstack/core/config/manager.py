"""
adminstack configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from adminstack.core.exceptions import ConfigurationError
from adminstack.core.utils.io import iter_yaml_files, read_yaml
from adminstack.core.utils.merge import deep_merge
from adminstack.data import get_data_path

logger = logging.getLogger(__name__)

PROJECT_CONFIG_DIRNAME = ".adminstack"
ENV_PREFIX = "ADMINSTACK_"


class ConfigManager:
    """Load, merge, and validate adminstack configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: ADMINSTACK_<SECTION>__<KEY>
    2. Project config: <project>/.adminstack/config/*.yaml (alphabetical order)
    3. Bundled defaults: adminstack.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, project_root: Optional[Path] = None) -> None:
        self.project_root = Path(project_root or Path.cwd()).resolve()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = self.project_root / PROJECT_CONFIG_DIRNAME / "config"
        self.schema_path = get_data_path("schemas", "config.schema.yaml")

    def config_dirs(self) -> List[Path]:
        """Return config directories in low→high precedence order (excluding env)."""
        return [self.core_config_dir, self.project_config_dir]

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            try:
                # Fail closed: configuration must never silently ignore invalid YAML.
                data = read_yaml(path, default={}, raise_on_error=True)
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigurationError(
                    f"Invalid configuration file {path}: {exc}",
                    context={"path": str(path)},
                ) from exc
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {path} must contain a mapping",
                    context={"path": str(path)},
                )
            cfg = deep_merge(cfg, data)
        return cfg

    # ---------- environment overrides ----------

    def _coerce_type(self, value: str) -> Any:
        s = value.strip()
        low = s.lower()
        if low in {"true", "false"}:
            return low == "true"
        if re.fullmatch(r"[-+]?\d+", s):
            return int(s)
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return s
        return s

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segs = raw.split("__")
            if len(segs) < 2 or any(not s for s in segs):
                logger.warning("Ignoring malformed configuration override %s", key)
                continue
            yield segs, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur = root
        for i, part in enumerate(path):
            # Match existing keys case-insensitively so ADMIN__BACKENDURL hits backendUrl.
            lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            use_key = lower_map.get(part.lower(), part.lower())
            if i == len(path) - 1:
                cur[use_key] = value
                return
            nxt = cur.get(use_key)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[use_key] = nxt
            cur = nxt

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, value in self._iter_env_overrides():
            self._set_nested(cfg, path, value)

    # ---------- validation ----------

    def validate(self, cfg: Dict[str, Any]) -> None:
        schema = read_yaml(self.schema_path, default=None, raise_on_error=True)
        try:
            jsonschema.validate(instance=cfg, schema=schema)
        except jsonschema.ValidationError as exc:
            where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigurationError(
                f"Invalid adminstack configuration at {where}: {exc.message}",
                context={"path": where},
            ) from exc

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration dictionary."""
        cfg: Dict[str, Any] = {}
        for directory in self.config_dirs():
            cfg = self._load_directory(directory, cfg)
        self.apply_env_overrides(cfg)
        if validate:
            self.validate(cfg)
        return cfg


__all__ = ["ConfigManager", "PROJECT_CONFIG_DIRNAME", "ENV_PREFIX"]
