from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .pom import PomModel
from .ref import ProjectRef


@dataclass(eq=False)
class Descriptor:
    """One build file: its raw model plus hierarchy metadata."""

    path: Path
    model: PomModel
    parent_key: Optional[ProjectRef] = None
    is_execution_root: bool = False
    is_inheritance_root: bool = False
    is_incremental_run: bool = False
    project_parent: Optional["Descriptor"] = field(default=None, repr=False)

    @property
    def key(self) -> ProjectRef:
        ref = ProjectRef.of(
            self.model.effective_group_id,
            self.model.artifact_id,
            self.model.effective_version,
        )
        if ref is None:
            # template / malformed descriptors still need a stable sort key
            return ProjectRef("", self.path.parent.name, "")
        return ref

    @property
    def modules(self) -> List[str]:
        return self.model.all_modules()

    @property
    def basedir(self) -> Path:
        return self.path.parent

    @property
    def depth(self) -> int:
        return hierarchy_depth(self)

    def copy(self) -> "Descriptor":
        return Descriptor(
            path=self.path,
            model=self.model.copy(),
            parent_key=self.parent_key,
            is_execution_root=self.is_execution_root,
            is_inheritance_root=self.is_inheritance_root,
            is_incremental_run=self.is_incremental_run,
            project_parent=self.project_parent,
        )

    def sort_key(self) -> tuple:
        return (self.depth, self.key)

    def __str__(self) -> str:
        return f"{self.key} [{self.path}]"


def hierarchy_depth(descriptor: Descriptor) -> int:
    depth = 0
    seen = set()
    current = descriptor
    while not current.is_inheritance_root and current.project_parent is not None:
        if id(current) in seen:
            break
        seen.add(id(current))
        current = current.project_parent
        depth += 1
    return depth
