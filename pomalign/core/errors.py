from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional


class ManipulationError(Exception):
    """
    Single error type surfaced by the manipulation pipeline.

    Carries a human-readable message plus the offending file and/or project
    identity when known. Callers are expected to abort the enclosing build.
    """

    kind = "manipulation"

    def __init__(
        self,
        message: str,
        *,
        file: Optional[Path | str] = None,
        identity: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.file = Path(file) if file is not None else None
        self.identity = str(identity) if identity is not None else None

    def __str__(self) -> str:
        parts = [self.message]
        if self.file is not None:
            parts.append(f"file={self.file}")
        if self.identity is not None:
            parts.append(f"project={self.identity}")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "file": str(self.file) if self.file is not None else None,
            "identity": self.identity,
        }


class ConfigurationError(ManipulationError):
    kind = "configuration"


class ScanError(ManipulationError):
    kind = "scan"


class TransformError(ManipulationError):
    kind = "transform"


class WriteError(ManipulationError):
    kind = "write"


class MergeError(ManipulationError):
    kind = "merge"
