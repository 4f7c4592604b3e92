"""
Per-run transformer state parsed from the flat configuration map.

States are published on the session (``session.set_state``) during
initialisation so later-initialised transformers, and the session itself, can
read them. Only the states shared across components live here; a transformer
that keeps its configuration to itself defines its state next to it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from pomalign.core.config.settings import STRICT_PROPERTY_VALIDATION
from pomalign.core.errors import ConfigurationError
from pomalign.core.model import Dependency, ProjectRef

DEPENDENCY_OVERRIDE_PREFIX = "dependencyOverride."
DEPENDENCY_EXCLUSION_PREFIX = "dependencyExclusion."

_STRICT_LEVELS = {"": 0, "false": 0, "true": 1, "revert": 2}


@dataclass
class CommonState:
    # 0 = off, 1 = on, 2 = revert
    strict_property_validation: int = 0

    def is_enabled(self) -> bool:
        return True

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "CommonState":
        raw = (props.get(STRICT_PROPERTY_VALIDATION) or "").strip().lower()
        if raw not in _STRICT_LEVELS:
            raise ConfigurationError(
                f"Invalid value for {STRICT_PROPERTY_VALIDATION}: {raw!r} (expected true, false or revert)"
            )
        return cls(strict_property_validation=_STRICT_LEVELS[raw])


@dataclass(frozen=True)
class DependencyOverride:
    group_id: str
    artifact_id: str
    module: str
    version: str
    source: str

    def matches_dependency(self, dep: Dependency) -> bool:
        return (
            self.group_id in ("*", dep.group_id or "")
            and self.artifact_id in ("*", dep.artifact_id or "")
        )

    def matches_module(self, ref: ProjectRef) -> bool:
        if self.module == "*":
            return True
        return self.module in (ref.versionless, ref.artifact_id)

    @classmethod
    def parse(cls, key: str, prefix: str, value: str) -> "DependencyOverride":
        spec = key[len(prefix):]
        ga, sep, module = spec.partition("@")
        parts = ga.split(":")
        if not sep or not module or len(parts) != 2 or not all(parts):
            raise ConfigurationError(
                f"Malformed dependency override {key!r}: expected {prefix}<groupId>:<artifactId>@<module>"
            )
        return cls(group_id=parts[0], artifact_id=parts[1], module=module, version=value.strip(), source=key)


@dataclass
class DependencyState:
    overrides: List[DependencyOverride] = field(default_factory=list)

    def is_enabled(self) -> bool:
        return bool(self.overrides)

    def override_for(self, dep: Dependency, module: ProjectRef) -> Optional[DependencyOverride]:
        # most specific wins: explicit module, then explicit coordinates
        best = None
        best_rank = None
        for o in self.overrides:
            if not (o.matches_dependency(dep) and o.matches_module(module)):
                continue
            rank = (o.module != "*", o.group_id != "*", o.artifact_id != "*")
            if best_rank is None or rank > best_rank:
                best, best_rank = o, rank
        return best

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "DependencyState":
        overrides: List[DependencyOverride] = []
        for key in sorted(props):
            for prefix in (DEPENDENCY_OVERRIDE_PREFIX, DEPENDENCY_EXCLUSION_PREFIX):
                if key.startswith(prefix):
                    overrides.append(DependencyOverride.parse(key, prefix, props[key]))
        return cls(overrides=overrides)
