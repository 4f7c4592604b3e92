from .config_io import ConfigIO
from .settings import (
    CORE_KEYS,
    DEFAULTS,
    classify_properties,
    get_bool,
    handle_config_precedence,
    normalize_properties,
    parse_bool,
)

__all__ = [
    "CORE_KEYS",
    "ConfigIO",
    "DEFAULTS",
    "classify_properties",
    "get_bool",
    "handle_config_precedence",
    "normalize_properties",
    "parse_bool",
]
