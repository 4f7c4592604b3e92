from __future__ import annotations

from enum import Enum
from typing import Dict, Set, Tuple


class PipelineState(str, Enum):
    IDLE = "IDLE"
    GATED_CHECK = "GATED_CHECK"
    CONFIG_RESOLVED = "CONFIG_RESOLVED"
    SCANNED = "SCANNED"
    TRANSFORMED = "TRANSFORMED"
    MERGED = "MERGED"
    WRITTEN = "WRITTEN"
    REPORTED = "REPORTED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


_ALLOWED: Set[Tuple[PipelineState, PipelineState]] = {
    (PipelineState.IDLE, PipelineState.GATED_CHECK),
    (PipelineState.GATED_CHECK, PipelineState.CONFIG_RESOLVED),
    (PipelineState.CONFIG_RESOLVED, PipelineState.SCANNED),
    (PipelineState.SCANNED, PipelineState.TRANSFORMED),
    (PipelineState.TRANSFORMED, PipelineState.MERGED),
    (PipelineState.MERGED, PipelineState.WRITTEN),
    (PipelineState.WRITTEN, PipelineState.REPORTED),

    # kill switch, nothing enabled, marker present / already covered
    (PipelineState.GATED_CHECK, PipelineState.SKIPPED),
    (PipelineState.CONFIG_RESOLVED, PipelineState.SKIPPED),
    (PipelineState.SCANNED, PipelineState.SKIPPED),
}

# MERGED is only final when nothing changed; it is not listed so it can advance
_TERMINAL: Set[PipelineState] = {
    PipelineState.REPORTED,
    PipelineState.SKIPPED,
    PipelineState.FAILED,
}


def is_terminal(state: PipelineState) -> bool:
    return state in _TERMINAL


def can_transition(src: PipelineState, dst: PipelineState) -> bool:
    if src == dst:
        return True
    if src in _TERMINAL:
        return False
    if dst == PipelineState.FAILED:
        return True
    return (src, dst) in _ALLOWED


def ensure_transition(src: PipelineState, dst: PipelineState) -> None:
    if not can_transition(src, dst):
        raise ValueError(f"Illegal transition: {src.value} -> {dst.value}")


def allowed_next(src: PipelineState) -> Dict[str, bool]:
    out: Dict[str, bool] = {}
    for a, b in _ALLOWED:
        if a == src:
            out[b.value] = True
    if src not in _TERMINAL:
        out[PipelineState.FAILED.value] = True
    return out
