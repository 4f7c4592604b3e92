from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, order=True)
class ProjectRef:
    group_id: str
    artifact_id: str
    version: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def versionless(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def versionless_equals(self, other: Optional["ProjectRef"]) -> bool:
        if other is None:
            return False
        return self.group_id == other.group_id and self.artifact_id == other.artifact_id

    @classmethod
    def of(cls, group_id: Optional[str], artifact_id: Optional[str], version: Optional[str]) -> Optional["ProjectRef"]:
        if not artifact_id:
            return None
        return cls(group_id or "", artifact_id, version or "")
