from .events import PipelineEvent
from .manager import ManipulationManager
from .run import PipelineRun
from .state_machine import PipelineState, allowed_next, can_transition, ensure_transition, is_terminal

__all__ = [
    "ManipulationManager",
    "PipelineEvent",
    "PipelineRun",
    "PipelineState",
    "allowed_next",
    "can_transition",
    "ensure_transition",
    "is_terminal",
]
