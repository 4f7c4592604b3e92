from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .state_machine import PipelineState


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PipelineEvent:
    state: PipelineState
    ts: str
    entry: str
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def mk(
        state: PipelineState,
        entry: str,
        message: str = "",
        payload: Optional[Dict[str, Any]] = None,
    ) -> "PipelineEvent":
        return PipelineEvent(
            state=state,
            ts=now_utc_iso(),
            entry=entry,
            message=message,
            payload=payload or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "ts": self.ts,
            "entry": self.entry,
            "message": self.message,
            "payload": self.payload,
        }
