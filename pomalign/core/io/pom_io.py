"""
Reading and writing of build descriptors.

Scanning starts at the entry descriptor and walks the hierarchy breadth-first,
following module references and local parent references. Nothing outside the
entry descriptor's directory tree is ever read.

Writing projects a descriptor's model onto its original document (see
projection.py) and re-emits it with the original formatting, either in place
or to a sibling temporary file.
"""
from __future__ import annotations

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from lxml import etree

from pomalign.core.errors import ConfigurationError, ScanError, WriteError
from pomalign.core.model import Descriptor, PomModel, ProjectRef

from .document import PROVENANCE_MARKER, PomDocument
from .projection import project_model

log = logging.getLogger("pomalign.io")

POM_FILE = "pom.xml"
TEMPORARY_SUFFIX = "-manipulated"


def resolve_reference(basedir: Path, ref: str) -> Path:
    """Module and parent references may name a directory or a file."""
    p = (basedir / ref.strip())
    if p.is_dir():
        p = p / POM_FILE
    return p.resolve()


def temporary_path(path: Path) -> Path:
    suffix = path.suffix or ".xml"
    return path.with_name(f"{path.stem}{TEMPORARY_SUFFIX}{suffix}")


def _is_template(model: PomModel) -> bool:
    values = (model.effective_group_id, model.artifact_id, model.effective_version)
    return any(v and "${" in v for v in values)


@dataclass
class PomPeek:
    path: Path
    document: PomDocument
    model: PomModel
    key: Optional[ProjectRef]
    parent_key: Optional[ProjectRef]
    inheritance_root: bool = False

    @classmethod
    def read(cls, path: Path) -> "PomPeek":
        try:
            document = PomDocument.load(path)
        except OSError as exc:
            raise ScanError(f"Unable to read descriptor: {exc}", file=path) from exc
        except (etree.XMLSyntaxError, ValueError, LookupError) as exc:
            raise ScanError(f"Unable to parse descriptor: {exc}", file=path) from exc

        model = PomModel.from_element(document.root)
        key = None
        if model.artifact_id and not _is_template(model):
            key = ProjectRef.of(model.effective_group_id, model.artifact_id, model.effective_version)

        parent_key = None
        if model.parent is not None:
            parent_key = ProjectRef.of(model.parent.group_id, model.parent.artifact_id, model.parent.version)

        return cls(path=path, document=document, model=model, key=key, parent_key=parent_key)


@dataclass
class ScanResult:
    descriptors: List[Descriptor]
    warnings: List[str] = field(default_factory=list)

    @property
    def execution_root(self) -> Descriptor:
        return self.descriptors[0]


class PomIO:
    def __init__(self, *, parse_templates: bool = True):
        self.parse_templates = parse_templates
        self._temporary: Set[Path] = set()

    # ---- scanning -----------------------------------------------------------

    def parse_project(self, entry: Path) -> ScanResult:
        entry = Path(entry)
        if entry.is_dir():
            entry = entry / POM_FILE
        if not entry.is_file():
            raise ConfigurationError("Entry descriptor does not exist", file=entry)
        entry = entry.resolve()

        warnings: List[str] = []
        peeked = self._peek_hierarchy(entry, warnings)
        descriptors = self._build_descriptors(entry, peeked)

        if not descriptors or not descriptors[0].is_execution_root:
            raise ScanError("First descriptor read is not the execution root", file=entry)

        log.info("Scanned %d descriptor(s) from %s", len(descriptors), entry)
        return ScanResult(descriptors=descriptors, warnings=warnings)

    def _warn(self, warnings: List[str], message: str) -> None:
        log.warning(message)
        warnings.append(message)

    def _peek_hierarchy(self, entry: Path, warnings: List[str]) -> List[PomPeek]:
        top_dir = entry.parent
        top_level_parent = entry

        peeked: List[PomPeek] = []
        seen: Set[Path] = set()
        queue = deque([entry])

        while queue:
            path = queue.popleft()
            if path in seen:
                continue
            seen.add(path)

            peek = PomPeek.read(path)
            if peek.key is None and not self.parse_templates:
                log.debug("Skipping template descriptor %s", path)
                continue
            peeked.append(peek)

            basedir = path.parent
            model = peek.model

            if model.parent is not None and model.parent.effective_relative_path.strip():
                parent_path = resolve_reference(basedir, model.parent.effective_relative_path)
                if not parent_path.is_relative_to(top_dir):
                    log.debug("Parent of %s (%s) is outside %s; not following", path, parent_path, top_dir)
                elif not parent_path.is_file():
                    self._warn(warnings, f"Parent descriptor {parent_path} referenced by {path} does not exist")
                elif parent_path not in seen and parent_path not in queue:
                    log.debug("Following parent %s of %s", parent_path, path)
                    top_level_parent = parent_path
                    queue.append(parent_path)

            for module in model.all_modules():
                if not module:
                    continue
                module_path = resolve_reference(basedir, module)
                if not module_path.is_relative_to(top_dir):
                    self._warn(warnings, f"Module {module} of {path} is outside {top_dir}; skipping")
                elif not module_path.is_file():
                    self._warn(warnings, f"Module {module} of {path} does not exist ({module_path}); skipping")
                elif module_path not in seen and module_path not in queue:
                    queue.append(module_path)

        # roots: the highest local ancestor, plus anything whose parent is not local
        keys = [p.key for p in peeked if p.key is not None]
        for p in peeked:
            if p.path == top_level_parent:
                p.inheritance_root = True
            elif p.parent_key is None or not any(k.versionless_equals(p.parent_key) for k in keys):
                p.inheritance_root = True

        return peeked

    def _build_descriptors(self, entry: Path, peeked: Iterable[PomPeek]) -> List[Descriptor]:
        descriptors: List[Descriptor] = []
        for peek in peeked:
            descriptors.append(Descriptor(
                path=peek.path,
                model=peek.model,
                parent_key=peek.parent_key,
                is_execution_root=peek.path == entry,
                is_inheritance_root=peek.inheritance_root,
                is_incremental_run=PROVENANCE_MARKER in peek.document.text,
            ))

        by_key = {d.key: d for d in descriptors}
        for d in descriptors:
            if d.parent_key is not None and not d.is_inheritance_root:
                d.project_parent = by_key.get(d.parent_key)
                if d.project_parent is None:
                    # versions may already differ after an earlier partial run
                    d.project_parent = next(
                        (o for o in descriptors if o.key.versionless_equals(d.parent_key)), None
                    )
        return descriptors

    # ---- writing ------------------------------------------------------------

    def write(self, descriptor: Descriptor, target: Path, model: Optional[PomModel] = None) -> Path:
        model = model if model is not None else descriptor.model
        try:
            document = PomDocument.load(descriptor.path)
        except (OSError, etree.XMLSyntaxError, ValueError, LookupError) as exc:
            raise WriteError(f"Unable to re-read descriptor for writing: {exc}", file=descriptor.path,
                             identity=str(descriptor.key)) from exc

        changed = project_model(document.root, model)
        text = document.render(changed=changed, provenance=descriptor.is_execution_root)

        target = Path(target)
        tmp = target.with_name(target.name + ".tmp")
        try:
            tmp.write_bytes(document.encode(text))
            tmp.replace(target)
        except OSError as exc:
            raise WriteError(f"Unable to write descriptor: {exc}", file=target,
                             identity=str(descriptor.key)) from exc

        log.debug("Wrote %s (%s)", target, "changed" if changed else "unchanged")
        return target

    def write_poms(
        self,
        descriptors: Iterable[Descriptor],
        output_for: Optional[Callable[[Descriptor], Path]] = None,
    ) -> List[Path]:
        written = []
        for d in descriptors:
            target = output_for(d) if output_for else d.path
            written.append(self.write(d, target))
        return written

    def write_temporary_poms(self, descriptors: Iterable[Descriptor]) -> Dict[Path, Path]:
        """
        Write every descriptor to a sibling temporary file. References between
        the written descriptors (modules, parent relativePath) are relocated so
        the temporary files form a consistent hierarchy; the originals are left
        untouched. Returns {original path: temporary path}.
        """
        descriptors = list(descriptors)
        relocations = {d.path: temporary_path(d.path) for d in descriptors}

        for d in descriptors:
            model = relocate_references(d, d.model.copy(), relocations)
            target = relocations[d.path]
            self._temporary.add(target)
            self.write(d, target, model)

        return relocations

    @property
    def has_temporary_files(self) -> bool:
        return bool(self._temporary)

    def dispose(self) -> None:
        for p in sorted(self._temporary):
            try:
                p.unlink(missing_ok=True)
            except OSError:
                log.warning("Unable to delete temporary descriptor %s", p, exc_info=True)
        self._temporary.clear()


def _relative(target: Path, basedir: Path) -> str:
    return Path(os.path.relpath(target, basedir)).as_posix()


def relocate_references(descriptor: Descriptor, model: PomModel, relocations: Dict[Path, Path]) -> PomModel:
    basedir = descriptor.basedir

    def _relocate(ref: str) -> str:
        target = relocations.get(resolve_reference(basedir, ref))
        return _relative(target, basedir) if target is not None else ref

    model.modules = [_relocate(m) for m in model.modules]
    for profile in model.profiles:
        profile.modules = [_relocate(m) for m in profile.modules]

    if model.parent is not None and model.parent.effective_relative_path.strip():
        target = relocations.get(resolve_reference(basedir, model.parent.effective_relative_path))
        if target is not None:
            model.parent.relative_path = _relative(target, basedir)

    return model
