from __future__ import annotations

from functools import lru_cache
from importlib import metadata

TOOL_NAME = "pom-align"
DISTRIBUTION = "pom-align"


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def manifest_information() -> str:
    return f"{TOOL_NAME} {get_version()}"
