"""
File-based configuration defaults.

Looks for one of the following next to the entry descriptor:
    .mvn/pme.json
    .mvn/pme.yaml
    .mvn/pme.yml

Nested mappings are flattened to dotted keys; an optional top-level ``pme:``
wrapper is unwrapped. Values are stringified. Example:

    pme:
      versionSuffix: rebuild-1
      dependencyOverride:
        "org.foo:bar@*": 1.2.3
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pomalign.core.errors import ConfigurationError

_log = logging.getLogger("pomalign.config")

CONFIG_DIR = ".mvn"
CONFIG_FILES = ("pme.json", "pme.yaml", "pme.yml")


def _flatten(raw: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    out: Dict[str, str] = {}
    for key, value in raw.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            # "dependencyOverride." style prefixes already carry their dot
            sep = "" if str(key).endswith(".") else "."
            out.update(_flatten(value, prefix=f"{name}{sep}"))
        elif value is None:
            out[name] = ""
        elif isinstance(value, bool):
            out[name] = "true" if value else "false"
        elif isinstance(value, list):
            out[name] = ",".join(str(v) for v in value)
        else:
            out[name] = str(value)
    return out


class ConfigIO:
    def find(self, directory: Path) -> Optional[Path]:
        config_dir = Path(directory) / CONFIG_DIR
        for name in CONFIG_FILES:
            p = config_dir / name
            if p.is_file():
                return p
        return None

    def parse(self, directory: Path) -> Dict[str, str]:
        """
        Returns the flattened configuration found under ``directory``, or an
        empty dict when there is none. A present but malformed file is fatal.
        """
        path = self.find(directory)
        if path is None:
            return {}

        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read configuration file: {exc}", file=path) from exc

        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError:
            try:
                data = yaml.safe_load(raw_text)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Cannot parse configuration file as JSON or YAML: {exc}", file=path) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping, got {type(data).__name__}",
                file=path,
            )

        if set(data.keys()) == {"pme"} and isinstance(data["pme"], dict):
            data = data["pme"]

        config = _flatten(data)
        _log.info("Loaded %d configuration values from %s", len(config), path)
        return config
