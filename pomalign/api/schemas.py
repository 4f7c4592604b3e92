from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ManipulateRequest(BaseModel):
    pom: str = Field(description="Path of the entry descriptor (file or directory) on the server.")
    properties: Dict[str, str] = Field(default_factory=dict, description="Flat -Dkey=value style configuration.")
    host_properties: Dict[str, str] = Field(
        default_factory=dict,
        description="Host property bag; may carry a previous report for chaining.",
    )


class ManipulateResponse(BaseModel):
    entry: str
    state: str
    execution_root: Optional[str] = None
    original_root: Optional[str] = None
    descriptors: int = 0
    transformers: List[str] = Field(default_factory=list)
    changed: List[str] = Field(default_factory=list)
    written: List[str] = Field(default_factory=list)
    relocations: Dict[str, str] = Field(default_factory=dict)
    marker: Optional[str] = None
    skip_reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)
    report: Optional[Dict[str, Any]] = None
    host_properties: Dict[str, str] = Field(default_factory=dict)


class TransformerOut(BaseModel):
    name: str
    priority: int
    version: str
    module_path: Optional[str] = None
    enabled: bool = False


class TransformersResponse(BaseModel):
    fingerprint: str
    transformers: List[TransformerOut]
