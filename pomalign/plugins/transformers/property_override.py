from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Set

from pomalign.core.model import Descriptor

log = logging.getLogger("pomalign.transformers.property_override")

PROPERTY_OVERRIDE_PREFIX = "propertyOverride."


@dataclass
class PropertyState:
    overrides: Dict[str, str] = field(default_factory=dict)

    def is_enabled(self) -> bool:
        return bool(self.overrides)

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "PropertyState":
        return cls(overrides={
            k[len(PROPERTY_OVERRIDE_PREFIX):]: v
            for k, v in props.items()
            if k.startswith(PROPERTY_OVERRIDE_PREFIX) and len(k) > len(PROPERTY_OVERRIDE_PREFIX)
        })


@dataclass
class PropertyOverrideTransformer:
    """Updates existing <properties> entries; never adds new ones."""

    name: str = "property-override"
    version: str = "1.0.0"
    priority: int = 15
    config_keys: Dict[str, bool] = field(default_factory=lambda: {PROPERTY_OVERRIDE_PREFIX: False})
    state: Optional[PropertyState] = None

    def init(self, session) -> None:
        self.state = PropertyState.from_properties(session.properties)
        session.set_state(self.state)

    def is_enabled(self) -> bool:
        return self.state is not None and self.state.is_enabled()

    def apply_changes(self, descriptors: Iterable[Descriptor]) -> Set[Descriptor]:
        changed: Set[Descriptor] = set()
        for d in descriptors:
            sections = [d.model.properties] + [p.properties for p in d.model.profiles]
            for props in sections:
                for name, value in self.state.overrides.items():
                    if name in props and props[name] != value:
                        log.info("%s: property %s %s -> %s", d.key, name, props[name], value)
                        props[name] = value
                        changed.add(d)
        return changed


TRANSFORMER = PropertyOverrideTransformer()
