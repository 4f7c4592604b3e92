from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pomalign.core.errors import ManipulationError
from pomalign.core.model import ProjectRef

from .events import PipelineEvent
from .state_machine import PipelineState, ensure_transition, is_terminal


@dataclass
class PipelineRun:
    """Result of one pipeline entry. ``execution_root`` is the final identity."""

    entry: Path
    state: PipelineState = PipelineState.IDLE
    events: List[PipelineEvent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    execution_root: Optional[ProjectRef] = None
    original_root: Optional[ProjectRef] = None
    descriptors: int = 0
    transformers: List[str] = field(default_factory=list)
    changed: List[Path] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    relocations: Dict[Path, Path] = field(default_factory=dict)
    marker: Optional[Path] = None
    report: Optional[Any] = None
    skip_reason: Optional[str] = None
    error: Optional[ManipulationError] = None

    # set while a lazily-entered run's merge is still pending
    future: Optional[Future] = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def advance(self, state: PipelineState, message: str = "", **payload: Any) -> None:
        with self._lock:
            ensure_transition(self.state, state)
            self.state = state
            self.events.append(PipelineEvent.mk(state, str(self.entry), message, payload))

    def skip(self, reason: str) -> None:
        self.skip_reason = reason
        self.advance(PipelineState.SKIPPED, reason)

    def fail(self, exc: ManipulationError) -> None:
        self.error = exc
        if not is_terminal(self.state):
            self.advance(PipelineState.FAILED, str(exc), kind=exc.kind)

    @property
    def skipped(self) -> bool:
        return self.state == PipelineState.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": str(self.entry),
            "state": self.state.value,
            "execution_root": str(self.execution_root) if self.execution_root else None,
            "original_root": str(self.original_root) if self.original_root else None,
            "descriptors": self.descriptors,
            "transformers": list(self.transformers),
            "changed": [str(p) for p in self.changed],
            "written": [str(p) for p in self.written],
            "relocations": {str(k): str(v) for k, v in self.relocations.items()},
            "marker": str(self.marker) if self.marker else None,
            "skip_reason": self.skip_reason,
            "warnings": list(self.warnings),
            "events": [e.to_dict() for e in self.events],
            "report": self.report.to_dict() if self.report is not None else None,
            "error": self.error.to_dict() if self.error is not None else None,
        }
