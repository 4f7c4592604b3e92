from .contracts import Transformer, TransformerInfo
from .registry import DEFAULT_PLUGIN_DIR, TransformerRegistry
from .states import CommonState, DependencyOverride, DependencyState

__all__ = [
    "CommonState",
    "DEFAULT_PLUGIN_DIR",
    "DependencyOverride",
    "DependencyState",
    "Transformer",
    "TransformerInfo",
    "TransformerRegistry",
]
