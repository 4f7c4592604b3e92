from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

from pomalign.core.model import Descriptor

log = logging.getLogger("pomalign.transformers.project_version")

VERSION_OVERRIDE = "versionOverride"
VERSION_SUFFIX = "versionSuffix"

_NUMBERED = re.compile(r"^(?P<stem>.*?)[-.]?(?P<num>\d+)$")


def strip_suffix(version: str, suffix: str) -> str:
    """
    Remove an earlier application of ``suffix`` from ``version``. A numbered
    suffix (``rebuild-3``) also matches other numbers with the same stem.
    """
    m = _NUMBERED.match(suffix)
    if m and m.group("stem"):
        pattern = rf"[-.]{re.escape(m.group('stem'))}[-.]?\d+$"
    else:
        pattern = rf"[-.]{re.escape(suffix)}$"
    return re.sub(pattern, "", version)


@dataclass
class VersioningState:
    override: Optional[str] = None
    suffix: Optional[str] = None

    def is_enabled(self) -> bool:
        return bool(self.override or self.suffix)

    def compute(self, version: str) -> str:
        if self.override:
            return self.override
        if self.suffix:
            return f"{strip_suffix(version, self.suffix)}-{self.suffix}"
        return version

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "VersioningState":
        return cls(
            override=(props.get(VERSION_OVERRIDE) or "").strip() or None,
            suffix=(props.get(VERSION_SUFFIX) or "").strip() or None,
        )


@dataclass
class ProjectVersionTransformer:
    name: str = "project-version"
    version: str = "1.0.0"
    priority: int = 40
    config_keys: Dict[str, bool] = field(default_factory=lambda: {VERSION_OVERRIDE: False, VERSION_SUFFIX: False})
    state: Optional[VersioningState] = None

    def init(self, session) -> None:
        self.state = VersioningState.from_properties(session.properties)
        session.set_state(self.state)

    def is_enabled(self) -> bool:
        return self.state is not None and self.state.is_enabled()

    def apply_changes(self, descriptors: Iterable[Descriptor]) -> Set[Descriptor]:
        descriptors = list(descriptors)
        changed: Set[Descriptor] = set()
        # groupId:artifactId -> (old, new)
        rewritten: Dict[str, Tuple[str, str]] = {}

        for d in descriptors:
            current = d.model.version
            if not current:
                continue
            if "${" in current:
                log.debug("Not rewriting property-based version %s of %s", current, d.path)
                continue
            new = self.state.compute(current)
            if new != current:
                d.model.version = new
                rewritten[d.key.versionless] = (current, new)
                changed.add(d)
                log.info("Version of %s: %s -> %s", d.path, current, new)

        # inherited versions follow their parent
        for d in descriptors:
            p = d.model.parent
            if p is None or d.model.version:
                continue
            ga = f"{p.group_id or ''}:{p.artifact_id or ''}"
            if ga in rewritten:
                rewritten.setdefault(d.key.versionless, rewritten[ga])

        for d in descriptors:
            p = d.model.parent
            if p is not None:
                hit = rewritten.get(f"{p.group_id or ''}:{p.artifact_id or ''}")
                if hit and p.version == hit[0]:
                    p.version = hit[1]
                    changed.add(d)
            for dep in d.model.all_dependencies():
                hit = rewritten.get(dep.ga)
                if hit and dep.version == hit[0]:
                    dep.version = hit[1]
                    changed.add(d)

        return changed


TRANSFORMER = ProjectVersionTransformer()
