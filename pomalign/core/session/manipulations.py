"""
Accumulated result of one or more pipeline passes over a root.

Both sets iterate in hierarchy order: depth ascending, then project identity.
Adding a descriptor that is already present (same file, or same depth and
identity) replaces it, so folding partial results never grows duplicates and
the most recent result wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional

from pomalign.core.model import Descriptor


class DescriptorSet:
    __slots__ = ("_by_path",)

    def __init__(self, items: Iterable[Descriptor] = ()):
        self._by_path: Dict[Path, Descriptor] = {}
        for d in items:
            self._put(d)

    def _put(self, d: Descriptor) -> None:
        sk = d.sort_key()
        stale = [p for p, o in self._by_path.items() if p == d.path or o.sort_key() == sk]
        for p in stale:
            del self._by_path[p]
        self._by_path[d.path] = d

    def with_all(self, items: Iterable[Descriptor]) -> "DescriptorSet":
        out = DescriptorSet(self)
        for d in items:
            out._put(d)
        return out

    def __iter__(self) -> Iterator[Descriptor]:
        return iter(sorted(self._by_path.values(), key=lambda d: d.sort_key()))

    def __len__(self) -> int:
        return len(self._by_path)

    def __bool__(self) -> bool:
        return bool(self._by_path)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Descriptor):
            return item.path in self._by_path
        return item in self._by_path

    def get(self, path: Path) -> Optional[Descriptor]:
        return self._by_path.get(Path(path))

    def paths(self) -> List[Path]:
        return [d.path for d in self]

    def __repr__(self) -> str:
        return f"DescriptorSet({[str(d.key) for d in self]})"


@dataclass(frozen=True)
class Manipulations:
    original: DescriptorSet = field(default_factory=DescriptorSet)
    manipulated: DescriptorSet = field(default_factory=DescriptorSet)
    # every descriptor file a pass has already run over
    covered: FrozenSet[Path] = frozenset()

    @classmethod
    def of(
        cls,
        candidates: Iterable[Descriptor],
        changed: Iterable[Descriptor],
        originals: Mapping[Path, Descriptor],
    ) -> "Manipulations":
        """
        Record of a single pass: ``originals`` holds the pre-transformation
        copies of the candidates keyed by path.
        """
        changed = list(changed)
        return cls(
            original=DescriptorSet(originals[d.path] for d in changed),
            manipulated=DescriptorSet(changed),
            covered=frozenset(d.path for d in candidates),
        )

    def extends_with(self, other: "Manipulations") -> "Manipulations":
        # an earlier original of the same file is the true original
        new_originals = [d for d in other.original if d.path not in self.original]
        return Manipulations(
            original=self.original.with_all(new_originals),
            manipulated=self.manipulated.with_all(other.manipulated),
            covered=self.covered | other.covered,
        )

    def covers(self, candidates: Iterable[Descriptor]) -> bool:
        paths = [d.path for d in candidates]
        return bool(paths) and all(p in self.covered for p in paths)

    @property
    def is_empty(self) -> bool:
        return not self.manipulated
