from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pomalign.core.model import ProjectRef


class GAV(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId")
    artifact_id: str = Field(alias="artifactId")
    version: str
    original_gav: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("originalGAV", "originalGav", "original_gav"),
        serialization_alias="originalGav",
    )

    @classmethod
    def of(cls, ref: ProjectRef, original: Optional[str] = None) -> "GAV":
        return cls(group_id=ref.group_id, artifact_id=ref.artifact_id, version=ref.version, original_gav=original)

    def ref(self) -> ProjectRef:
        return ProjectRef(self.group_id, self.artifact_id, self.version)


class ModuleReport(BaseModel):
    gav: GAV
    path: Optional[str] = None
    diffs: List[Dict[str, Any]] = Field(default_factory=list)


class PMEReport(BaseModel):
    gav: GAV
    modules: List[ModuleReport] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, text: str) -> "PMEReport":
        return cls.model_validate_json(text)
