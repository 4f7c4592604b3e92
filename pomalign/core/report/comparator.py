"""
Before/after diff of the manipulated descriptors.

Each diff entry is a plain dict:
    {"type": ..., "change": "changed|added|removed|relocated", "key": ..., "from": ..., "to": ...}
Entries from a profile also carry "profile".
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pomalign.core.model import Descriptor, ProjectRef

from .models import GAV, ModuleReport, PMEReport

if TYPE_CHECKING:
    from pomalign.core.session.manipulations import Manipulations

log = logging.getLogger("pomalign.report")


def _diff(type_: str, change: str, key: str, old: Any, new: Any, profile: Optional[str] = None) -> Dict[str, Any]:
    d = {"type": type_, "change": change, "key": key, "from": old, "to": new}
    if profile is not None:
        d["profile"] = profile
    return d


class ProjectComparator:
    def _compare_items(self, type_: str, before, after, out: List[Dict[str, Any]], profile: Optional[str] = None) -> None:
        """Shared comparison for dependency and plugin lists."""
        originals = {}
        for item in before:
            originals.setdefault(item.source_key or item.key, item)

        seen = set()
        for item in after:
            src = item.source_key or item.key
            old = originals.get(src)
            if old is None:
                out.append(_diff(type_, "added", item.key, None, item.version, profile))
                continue
            seen.add(src)
            if item.key != old.key:
                out.append(_diff(type_, "relocated", old.key, old.key, item.key, profile))
            if item.version != old.version:
                out.append(_diff(type_, "changed", item.key, old.version, item.version, profile))

        for src, old in originals.items():
            if src not in seen:
                out.append(_diff(type_, "removed", old.key, old.version, None, profile))

    def _compare_properties(self, before: Dict[str, str], after: Dict[str, str], out, profile=None) -> None:
        for name, value in after.items():
            if name not in before:
                out.append(_diff("property", "added", name, None, value, profile))
            elif before[name] != value:
                out.append(_diff("property", "changed", name, before[name], value, profile))
        for name, value in before.items():
            if name not in after:
                out.append(_diff("property", "removed", name, value, None, profile))

    def compare(self, original: Descriptor, manipulated: Descriptor) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        a, b = original.model, manipulated.model

        if a.version != b.version:
            out.append(_diff("version", "changed", manipulated.key.versionless, a.version, b.version))

        pa, pb = a.parent, b.parent
        if pa is not None or pb is not None:
            old = ProjectRef.of(pa.group_id, pa.artifact_id, pa.version) if pa else None
            new = ProjectRef.of(pb.group_id, pb.artifact_id, pb.version) if pb else None
            if old != new:
                ref = new or old
                out.append(_diff("parent", "changed", ref.versionless if ref else "",
                                 str(old) if old else None, str(new) if new else None))

        self._compare_items("dependency", a.dependencies, b.dependencies, out)
        self._compare_items("managedDependency", a.dependency_management, b.dependency_management, out)
        self._compare_items("plugin", a.plugins, b.plugins, out)
        self._compare_items("managedPlugin", a.plugin_management, b.plugin_management, out)
        self._compare_properties(a.properties, b.properties, out)

        before_profiles = {p.id: p for p in a.profiles}
        for p in b.profiles:
            q = before_profiles.get(p.id)
            if q is None:
                continue
            self._compare_items("dependency", q.dependencies, p.dependencies, out, profile=p.id)
            self._compare_items("managedDependency", q.dependency_management, p.dependency_management, out, profile=p.id)
            self._compare_properties(q.properties, p.properties, out, profile=p.id)

        return out

    def build_report(
        self,
        manipulations: Manipulations,
        execution_root: Descriptor,
        original_root: ProjectRef,
        previous: Optional[PMEReport] = None,
    ) -> PMEReport:
        original_gav = None
        if previous is not None and previous.gav.original_gav:
            original_gav = previous.gav.original_gav
            log.debug("Carrying original identity %s from previous report", original_gav)
        if original_gav is None:
            original_gav = str(original_root)

        modules: List[ModuleReport] = []
        for d in manipulations.manipulated:
            before = manipulations.original.get(d.path)
            diffs = self.compare(before, d) if before is not None else []
            modules.append(ModuleReport(gav=GAV.of(d.key), path=str(d.path), diffs=diffs))

        return PMEReport(gav=GAV.of(execution_root.key, original_gav), modules=modules)

    def to_text(self, report: PMEReport) -> str:
        lines = [f"Execution root {report.gav.ref()} (original {report.gav.original_gav})"]
        for module in report.modules:
            lines.append("")
            lines.append(f"---- project {module.gav.ref()}")
            if not module.diffs:
                lines.append("\tno changes recorded")
            for d in module.diffs:
                where = f"[{d['profile']}] " if d.get("profile") else ""
                lines.append(f"\t{where}{d['type']} {d['key']} {d['change']}: {d['from']} --> {d['to']}")
        return "\n".join(lines) + "\n"
