"""
Raw (un-interpolated) POM model.

Only the fields the manipulation pipeline and its transformers care about are
modelled. Values are read verbatim from the XML: no inheritance, no property
interpolation, no profile activation. That is what allows a changed model to be
projected back onto the original document without leaking resolved values.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from lxml import etree

DEFAULT_RELATIVE_PATH = "../pom.xml"


def localname(el) -> Optional[str]:
    if not isinstance(el.tag, str):
        return None
    return etree.QName(el).localname


def child(el, name: str):
    if el is None:
        return None
    for c in el:
        if localname(c) == name:
            return c
    return None


def children(el, name: str) -> List:
    if el is None:
        return []
    return [c for c in el if localname(c) == name]


def child_text(el, name: str) -> Optional[str]:
    c = child(el, name)
    if c is None:
        return None
    return (c.text or "").strip()


@dataclass
class Dependency:
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str] = None
    type: Optional[str] = None
    classifier: Optional[str] = None
    scope: Optional[str] = None
    # key the entry was read with; None for entries added by a transformer
    source_key: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def ga(self) -> str:
        return f"{self.group_id or ''}:{self.artifact_id or ''}"

    @property
    def key(self) -> str:
        return f"{self.ga}:{self.type or 'jar'}:{self.classifier or ''}"

    @classmethod
    def from_element(cls, el) -> "Dependency":
        dep = cls(
            group_id=child_text(el, "groupId"),
            artifact_id=child_text(el, "artifactId"),
            version=child_text(el, "version"),
            type=child_text(el, "type"),
            classifier=child_text(el, "classifier"),
            scope=child_text(el, "scope"),
        )
        dep.source_key = dep.key
        return dep


@dataclass
class Plugin:
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str] = None
    source_key: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        return f"{self.group_id or 'org.apache.maven.plugins'}:{self.artifact_id or ''}"

    @classmethod
    def from_element(cls, el) -> "Plugin":
        plugin = cls(
            group_id=child_text(el, "groupId"),
            artifact_id=child_text(el, "artifactId"),
            version=child_text(el, "version"),
        )
        plugin.source_key = plugin.key
        return plugin


@dataclass
class ParentRef:
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str]
    relative_path: Optional[str] = None

    @property
    def effective_relative_path(self) -> str:
        if self.relative_path is None:
            return DEFAULT_RELATIVE_PATH
        return self.relative_path


@dataclass
class Profile:
    id: str
    modules: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[Dependency] = field(default_factory=list)
    dependency_management: List[Dependency] = field(default_factory=list)


def _read_properties(el) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for c in (el if el is not None else []):
        name = localname(c)
        if name is None:
            continue
        out[name] = (c.text or "").strip()
    return out


def _read_dependencies(container) -> List[Dependency]:
    deps = child(container, "dependencies")
    return [Dependency.from_element(d) for d in children(deps, "dependency")]


def _read_managed_dependencies(container) -> List[Dependency]:
    return _read_dependencies(child(container, "dependencyManagement"))


def _read_plugins(container) -> List[Plugin]:
    plugins = child(container, "plugins")
    return [Plugin.from_element(p) for p in children(plugins, "plugin")]


@dataclass
class PomModel:
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None
    packaging: Optional[str] = None
    parent: Optional[ParentRef] = None
    modules: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[Dependency] = field(default_factory=list)
    dependency_management: List[Dependency] = field(default_factory=list)
    plugins: List[Plugin] = field(default_factory=list)
    plugin_management: List[Plugin] = field(default_factory=list)
    profiles: List[Profile] = field(default_factory=list)

    @property
    def effective_group_id(self) -> Optional[str]:
        if self.group_id:
            return self.group_id
        return self.parent.group_id if self.parent else None

    @property
    def effective_version(self) -> Optional[str]:
        if self.version:
            return self.version
        return self.parent.version if self.parent else None

    def all_dependencies(self) -> Iterator[Dependency]:
        yield from self.dependencies
        yield from self.dependency_management
        for profile in self.profiles:
            yield from profile.dependencies
            yield from profile.dependency_management

    def all_modules(self) -> List[str]:
        out = list(self.modules)
        for profile in self.profiles:
            out.extend(m for m in profile.modules if m not in out)
        return out

    def copy(self) -> "PomModel":
        return copy.deepcopy(self)

    @classmethod
    def from_element(cls, root) -> "PomModel":
        parent_el = child(root, "parent")
        parent = None
        if parent_el is not None:
            parent = ParentRef(
                group_id=child_text(parent_el, "groupId"),
                artifact_id=child_text(parent_el, "artifactId"),
                version=child_text(parent_el, "version"),
                relative_path=child_text(parent_el, "relativePath"),
            )

        build = child(root, "build")
        profiles: List[Profile] = []
        for p in children(child(root, "profiles"), "profile"):
            profiles.append(Profile(
                id=child_text(p, "id") or "default",
                modules=[(m.text or "").strip() for m in children(child(p, "modules"), "module")],
                properties=_read_properties(child(p, "properties")),
                dependencies=_read_dependencies(p),
                dependency_management=_read_managed_dependencies(p),
            ))

        return cls(
            group_id=child_text(root, "groupId"),
            artifact_id=child_text(root, "artifactId"),
            version=child_text(root, "version"),
            packaging=child_text(root, "packaging"),
            parent=parent,
            modules=[(m.text or "").strip() for m in children(child(root, "modules"), "module")],
            properties=_read_properties(child(root, "properties")),
            dependencies=_read_dependencies(root),
            dependency_management=_read_managed_dependencies(root),
            plugins=_read_plugins(build),
            plugin_management=_read_plugins(child(build, "pluginManagement")),
            profiles=profiles,
        )
