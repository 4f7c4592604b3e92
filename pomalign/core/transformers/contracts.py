from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol, Set

from pomalign.core.model import Descriptor


class Transformer(Protocol):
    """
    Stable contract for pluggable transformers.
    Plugin modules must export: TRANSFORMER (instance implementing this protocol)

    priority is the execution index: lower runs first. init() reads the
    session's configuration and publishes state; it must not touch
    descriptors. apply_changes() mutates the live descriptors and returns the
    ones it changed (None is treated as empty).
    """
    name: str
    priority: int
    version: str
    # configuration key (or key prefix) -> deprecated?
    config_keys: Dict[str, bool]

    def init(self, session: Any) -> None:
        ...

    def is_enabled(self) -> bool:
        ...

    def apply_changes(self, descriptors: Iterable[Descriptor]) -> Optional[Set[Descriptor]]:
        ...


@dataclass(frozen=True)
class TransformerInfo:
    name: str
    priority: int
    version: str
    module_path: Optional[str]
    enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priority": self.priority,
            "version": self.version,
            "module_path": self.module_path,
            "enabled": self.enabled,
        }
