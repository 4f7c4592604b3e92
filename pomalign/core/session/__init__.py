from .manipulations import DescriptorSet, Manipulations
from .merger import ManipulationsMerger, MergeOutcome
from .registry import SessionRegistry
from .session import MARKER_FILE, ManipulationSession

__all__ = [
    "DescriptorSet",
    "MARKER_FILE",
    "ManipulationSession",
    "Manipulations",
    "ManipulationsMerger",
    "MergeOutcome",
    "SessionRegistry",
]
