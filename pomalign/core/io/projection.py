"""
Projects a (possibly mutated) PomModel back onto the original lxml tree.

Only the elements whose value actually differs are touched; new elements are
inserted at their conventional position and indented like their siblings, and
removed elements hand their trailing whitespace to the previous sibling so the
surrounding layout is kept.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from lxml import etree

from pomalign.core.model.pom import (
    Dependency,
    ParentRef,
    Plugin,
    PomModel,
    child,
    child_text,
    children,
    localname,
)

log = logging.getLogger("pomalign.io")

PROJECT_ORDER = [
    "modelVersion", "parent", "groupId", "artifactId", "version", "packaging",
    "name", "description", "url", "inceptionYear", "organization", "licenses",
    "developers", "contributors", "mailingLists", "prerequisites", "modules",
    "scm", "issueManagement", "ciManagement", "distributionManagement",
    "properties", "dependencyManagement", "dependencies", "repositories",
    "pluginRepositories", "build", "reporting", "profiles",
]
PROFILE_ORDER = [
    "id", "activation", "build", "modules", "distributionManagement",
    "properties", "dependencyManagement", "dependencies", "repositories",
    "pluginRepositories", "reporting",
]
PARENT_ORDER = ["groupId", "artifactId", "version", "relativePath"]
DEPENDENCY_ORDER = [
    "groupId", "artifactId", "version", "type", "classifier", "scope",
    "systemPath", "exclusions", "optional",
]
PLUGIN_ORDER = ["groupId", "artifactId", "version", "extensions", "executions", "dependencies", "configuration"]
BUILD_ORDER = ["defaultGoal", "directory", "finalName", "pluginManagement", "plugins"]

DEFAULT_INDENT = "    "


def _whitespace_before(el) -> str:
    prev = el.getprevious()
    if prev is not None:
        return prev.tail or ""
    parent = el.getparent()
    return (parent.text or "") if parent is not None else ""


def _last_line(ws: str) -> str:
    if "\n" not in ws:
        return ""
    return ws.rsplit("\n", 1)[1]


class ModelProjector:
    def __init__(self, root):
        self.root = root
        self.changed = False
        first = next((c for c in root if isinstance(c.tag, str)), None)
        unit = _last_line(_whitespace_before(first)) if first is not None else ""
        self.indent_unit = unit if unit and not unit.strip() else DEFAULT_INDENT

    # ---- whitespace-aware tree edits ------------------------------------

    def _own_indent(self, el) -> str:
        if el.getparent() is None:
            return ""
        return _last_line(_whitespace_before(el))

    def _child_indent(self, parent) -> str:
        if len(parent):
            indent = _last_line(parent.text or "")
            if indent:
                return indent
        return self._own_indent(parent) + self.indent_unit

    def _make(self, parent, name: str):
        ns = etree.QName(parent).namespace
        tag = f"{{{ns}}}{name}" if ns else name
        return parent.makeelement(tag, {})

    def _position(self, parent, name: str, order: Sequence[str]) -> int:
        if name not in order:
            return len(parent)
        rank = order.index(name)
        pos = 0
        for i, c in enumerate(parent):
            ln = localname(c)
            if ln in order and order.index(ln) <= rank:
                pos = i + 1
        return pos

    def _insert(self, parent, el, index: int) -> None:
        kids = list(parent)
        indent = self._child_indent(parent)
        if not kids:
            parent.text = "\n" + indent
            el.tail = "\n" + self._own_indent(parent)
            parent.append(el)
        elif index >= len(kids):
            last = kids[-1]
            el.tail = last.tail
            last.tail = "\n" + indent
            parent.append(el)
        else:
            el.tail = "\n" + indent
            parent.insert(index, el)
        self.changed = True

    def _remove(self, el) -> None:
        parent = el.getparent()
        prev = el.getprevious()
        if prev is not None:
            prev.tail = el.tail
        else:
            parent.text = el.tail
        parent.remove(el)
        self.changed = True

    def _ensure(self, parent, name: str, order: Sequence[str]):
        el = child(parent, name)
        if el is None:
            el = self._make(parent, name)
            self._insert(parent, el, self._position(parent, name, order))
        return el

    def _set_text(self, parent, name: str, value: Optional[str], order: Sequence[str]) -> None:
        el = child(parent, name)
        if value is None:
            if el is not None:
                self._remove(el)
            return
        if el is None:
            el = self._make(parent, name)
            el.text = value
            self._insert(parent, el, self._position(parent, name, order))
            return
        if (el.text or "").strip() != value:
            el.text = value
            self.changed = True

    # ---- model sections ---------------------------------------------------

    def _project_parent(self, parent_ref: Optional[ParentRef]) -> None:
        el = child(self.root, "parent")
        if parent_ref is None:
            if el is not None:
                self._remove(el)
            return
        el = self._ensure(self.root, "parent", PROJECT_ORDER)
        self._set_text(el, "groupId", parent_ref.group_id, PARENT_ORDER)
        self._set_text(el, "artifactId", parent_ref.artifact_id, PARENT_ORDER)
        self._set_text(el, "version", parent_ref.version, PARENT_ORDER)
        self._set_text(el, "relativePath", parent_ref.relative_path, PARENT_ORDER)

    def _project_modules(self, owner, modules: List[str], order: Sequence[str]) -> None:
        container = child(owner, "modules")
        if not modules:
            if container is not None and children(container, "module"):
                self._remove(container)
            return
        container = self._ensure(owner, "modules", order)
        elements = children(container, "module")
        for i, module in enumerate(modules):
            if i < len(elements):
                if (elements[i].text or "").strip() != module:
                    elements[i].text = module
                    self.changed = True
            else:
                el = self._make(container, "module")
                el.text = module
                self._insert(container, el, len(container))
        for el in elements[len(modules):]:
            self._remove(el)

    def _project_properties(self, owner, properties: Dict[str, str], order: Sequence[str]) -> None:
        container = child(owner, "properties")
        if container is None and not properties:
            return
        container = self._ensure(owner, "properties", order)
        present = set()
        for el in list(container):
            name = localname(el)
            if name is None:
                continue
            if name not in properties:
                self._remove(el)
                continue
            present.add(name)
            if (el.text or "").strip() != properties[name]:
                el.text = properties[name]
                self.changed = True
        for name, value in properties.items():
            if name in present:
                continue
            el = self._make(container, name)
            el.text = value
            self._insert(container, el, len(container))

    def _project_items(self, container_owner, container_name: str, item_name: str, items, fields, order) -> None:
        """
        Shared projection for dependency and plugin lists. Existing elements
        are matched by the key the entry was read with.
        """
        container = child(container_owner, container_name)
        if not items:
            if container is not None:
                for el in children(container, item_name):
                    self._remove(el)
            return

        container = self._ensure(container_owner, container_name, order)
        elements = children(container, item_name)
        reader = Dependency.from_element if item_name == "dependency" else Plugin.from_element

        by_key: Dict[str, list] = {}
        for el in elements:
            by_key.setdefault(reader(el).key, []).append(el)

        used = set()
        for item in items:
            candidates = [e for e in by_key.get(item.source_key, []) if id(e) not in used]
            el = candidates[0] if candidates else None
            if el is None:
                el = self._make(container, item_name)
                self._insert(container, el, len(container))
            used.add(id(el))
            for name, attr in fields:
                self._set_text(el, name, getattr(item, attr), DEPENDENCY_ORDER if item_name == "dependency" else PLUGIN_ORDER)

        for el in elements:
            if id(el) not in used:
                self._remove(el)

    def _project_dependencies(self, owner, deps: List[Dependency], order: Sequence[str]) -> None:
        self._project_items(owner, "dependencies", "dependency", deps, _DEPENDENCY_FIELDS, order)

    def _project_managed(self, owner, deps: List[Dependency], order: Sequence[str]) -> None:
        mgmt = child(owner, "dependencyManagement")
        if mgmt is None and not deps:
            return
        mgmt = self._ensure(owner, "dependencyManagement", order)
        self._project_items(mgmt, "dependencies", "dependency", deps, _DEPENDENCY_FIELDS, ["dependencies"])

    def _project_build(self, model: PomModel) -> None:
        build = child(self.root, "build")
        if build is None and not model.plugins and not model.plugin_management:
            return
        if model.plugins or child(build, "plugins") is not None:
            build = self._ensure(self.root, "build", PROJECT_ORDER)
            self._project_items(build, "plugins", "plugin", model.plugins, _PLUGIN_FIELDS, BUILD_ORDER)
        mgmt = child(build, "pluginManagement") if build is not None else None
        if model.plugin_management or mgmt is not None:
            build = self._ensure(self.root, "build", PROJECT_ORDER)
            mgmt = self._ensure(build, "pluginManagement", BUILD_ORDER)
            self._project_items(mgmt, "plugins", "plugin", model.plugin_management, _PLUGIN_FIELDS, ["plugins"])

    def _project_profiles(self, model: PomModel) -> None:
        by_id = {}
        for el in children(child(self.root, "profiles"), "profile"):
            by_id.setdefault(child_text(el, "id") or "default", el)
        for profile in model.profiles:
            el = by_id.get(profile.id)
            if el is None:
                log.debug("Profile %s is not present in the document; skipping", profile.id)
                continue
            self._project_modules(el, profile.modules, PROFILE_ORDER)
            self._project_properties(el, profile.properties, PROFILE_ORDER)
            self._project_managed(el, profile.dependency_management, PROFILE_ORDER)
            self._project_dependencies(el, profile.dependencies, PROFILE_ORDER)

    def project(self, model: PomModel) -> bool:
        self._project_parent(model.parent)
        self._set_text(self.root, "groupId", model.group_id, PROJECT_ORDER)
        self._set_text(self.root, "artifactId", model.artifact_id, PROJECT_ORDER)
        self._set_text(self.root, "version", model.version, PROJECT_ORDER)
        self._set_text(self.root, "packaging", model.packaging, PROJECT_ORDER)
        self._project_modules(self.root, model.modules, PROJECT_ORDER)
        self._project_properties(self.root, model.properties, PROJECT_ORDER)
        self._project_managed(self.root, model.dependency_management, PROJECT_ORDER)
        self._project_dependencies(self.root, model.dependencies, PROJECT_ORDER)
        self._project_build(model)
        self._project_profiles(model)
        return self.changed


_DEPENDENCY_FIELDS = [
    ("groupId", "group_id"),
    ("artifactId", "artifact_id"),
    ("version", "version"),
    ("type", "type"),
    ("classifier", "classifier"),
    ("scope", "scope"),
]
_PLUGIN_FIELDS = [
    ("groupId", "group_id"),
    ("artifactId", "artifact_id"),
    ("version", "version"),
]


def project_model(root, model: PomModel) -> bool:
    """Apply ``model`` to ``root`` in place. Returns True if the tree changed."""
    return ModelProjector(root).project(model)
