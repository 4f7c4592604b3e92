from .descriptor import Descriptor, hierarchy_depth
from .pom import Dependency, ParentRef, Plugin, PomModel, Profile
from .ref import ProjectRef

__all__ = [
    "Dependency",
    "Descriptor",
    "ParentRef",
    "Plugin",
    "PomModel",
    "Profile",
    "ProjectRef",
    "hierarchy_depth",
]
