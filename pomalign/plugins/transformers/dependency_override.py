from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from pomalign.core.model import Descriptor
from pomalign.core.transformers.states import (
    DEPENDENCY_EXCLUSION_PREFIX,
    DEPENDENCY_OVERRIDE_PREFIX,
    DependencyState,
)

log = logging.getLogger("pomalign.transformers.dependency_override")


@dataclass
class DependencyOverrideTransformer:
    """
    dependencyOverride.<groupId>:<artifactId>@<module>=<version>

    Rewrites the version of matching dependencies and managed dependencies in
    every descriptor whose identity matches <module> ("*" for all). An empty
    value removes the version element. Either coordinate may be "*".
    """

    name: str = "dependency-override"
    version: str = "1.0.0"
    priority: int = 20
    config_keys: Dict[str, bool] = field(default_factory=lambda: {
        DEPENDENCY_OVERRIDE_PREFIX: False,
        DEPENDENCY_EXCLUSION_PREFIX: True,
    })
    state: Optional[DependencyState] = None

    def init(self, session) -> None:
        self.state = DependencyState.from_properties(session.properties)
        session.set_state(self.state)

    def is_enabled(self) -> bool:
        return self.state is not None and self.state.is_enabled()

    def apply_changes(self, descriptors: Iterable[Descriptor]) -> Set[Descriptor]:
        changed: Set[Descriptor] = set()
        for d in descriptors:
            for dep in d.model.all_dependencies():
                override = self.state.override_for(dep, d.key)
                if override is None:
                    continue
                target = override.version or None
                if dep.version == target:
                    continue
                log.info("%s: %s %s -> %s (%s)", d.key, dep.ga, dep.version, target, override.source)
                dep.version = target
                changed.add(d)
        return changed


TRANSFORMER = DependencyOverrideTransformer()
