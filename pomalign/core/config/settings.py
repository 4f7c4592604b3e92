"""
Recognised configuration keys and the precedence rules between sources.

Configuration is a flat string map (think ``-Dkey=value``). Sources, lowest to
highest precedence:
  1) built-in defaults (``DEFAULTS``)
  2) file-based configuration (``.mvn/pme.yaml`` etc., see ConfigIO)
  3) explicit run-time properties
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Tuple

log = logging.getLogger("pomalign.config")

KILL_SWITCH = "manipulation.disable"
REWRITE_CHANGED = "manipulationWriteChanged"
REPORT_TXT_OUTPUT_FILE = "reportTxtOutputFile"
REPORT_JSON_OUTPUT_FILE = "reportJSONOutputFile"
DEPRECATED_PROPERTIES = "enabledDeprecatedProperties"
STRICT_PROPERTY_VALIDATION = "strictPropertyValidation"
PARSE_POM_TEMPLATES = "parsePomTemplates"

# keys that belong to the host and are never reported as unknown
IGNORED_KEYS = frozenset({"maven.repo.local"})

# key (or key prefix) -> deprecated?
CORE_KEYS: Dict[str, bool] = {
    KILL_SWITCH: False,
    REWRITE_CHANGED: False,
    REPORT_TXT_OUTPUT_FILE: False,
    REPORT_JSON_OUTPUT_FILE: False,
    DEPRECATED_PROPERTIES: False,
    STRICT_PROPERTY_VALIDATION: False,
    PARSE_POM_TEMPLATES: False,
}

DEFAULTS: Dict[str, str] = {
    KILL_SWITCH: "false",
    REWRITE_CHANGED: "true",
    DEPRECATED_PROPERTIES: "false",
    PARSE_POM_TEMPLATES: "true",
}

_TRUE = ("1", "true", "yes", "on")


def parse_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    s = str(value).strip().lower()
    if not s:
        return default
    return s in _TRUE


def get_bool(props: Mapping[str, str], key: str, default: bool = False) -> bool:
    return parse_bool(props.get(key), default)


def normalize_properties(raw: Mapping[str, object] | None) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in (raw or {}).items():
        if k is None:
            continue
        out[str(k)] = "" if v is None else str(v)
    return out


def handle_config_precedence(user: Mapping[str, str], file_config: Mapping[str, str]) -> Dict[str, str]:
    """
    Merge file-based configuration and built-in defaults under the user
    supplied properties. Returns a new dict; inputs are not modified.
    """
    merged: Dict[str, str] = dict(DEFAULTS)

    for k, v in file_config.items():
        merged[k] = v

    for k, v in user.items():
        if k in file_config and file_config[k] != v:
            log.debug("Run-time property %s=%s overrides file configuration value %s", k, v, file_config[k])
        merged[k] = v

    return merged


def classify_properties(
    props: Iterable[str],
    known: Mapping[str, bool],
) -> Tuple[List[str], Dict[str, str]]:
    """
    Returns (unknown_keys, deprecated_usage) where deprecated_usage maps the
    offending key to the matcher it was found with. Known entries match as
    prefixes, so ``dependencyOverride.`` covers every override key.
    """
    unknown: List[str] = []
    deprecated: Dict[str, str] = {}

    for p in sorted(props):
        if p in IGNORED_KEYS:
            continue
        matchers = [k for k in known if p.startswith(k)]
        if not matchers:
            unknown.append(p)
            continue
        for m in matchers:
            if known[m]:
                deprecated[p] = m

    return unknown, deprecated
