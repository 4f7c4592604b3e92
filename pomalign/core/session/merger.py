"""
Single-worker merge queue.

Every partial result for a root is folded into the accumulated Manipulations
on one dedicated worker thread, so concurrent or nested pipeline entries get a
total order of merges. After each drain that changed something the
``on_merged`` callback (write + report + marker) runs on the same worker.
"""
from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pomalign.core.errors import ManipulationError, MergeError

from .manipulations import Manipulations

log = logging.getLogger("pomalign.merge")

T = TypeVar("T")


@dataclass
class MergeOutcome:
    manipulations: Manipulations
    written: List[Path] = field(default_factory=list)
    report: Optional[Any] = None
    marker: Optional[Path] = None
    # original path -> temporary path (side-channel mode)
    relocations: Dict[Path, Path] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.written)


OnMerged = Callable[[Manipulations], MergeOutcome]


class ManipulationsMerger:
    def __init__(self, on_merged: Optional[OnMerged] = None, *, name: str = "pomalign-merge"):
        self._on_merged = on_merged
        self._queue: "queue.Queue[Manipulations]" = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        # owned by the worker thread only
        self._accumulated = Manipulations()
        self._last_outcome = MergeOutcome(manipulations=self._accumulated)
        self._last_error: Optional[BaseException] = None

    def submit(self, partial: Manipulations) -> "Future[MergeOutcome]":
        self._queue.put(partial)
        return self._executor.submit(self._drain)

    def query(self, fn: Callable[[Manipulations], T]) -> "Future[T]":
        """Run a read-only function against the accumulated result on the worker."""
        return self._executor.submit(lambda: fn(self._accumulated))

    def _drain(self) -> MergeOutcome:
        folded = 0
        grew = False
        while True:
            try:
                partial = self._queue.get_nowait()
            except queue.Empty:
                break
            self._accumulated = self._accumulated.extends_with(partial)
            folded += 1
            grew = grew or not partial.is_empty

        if folded == 0:
            # an earlier drain already folded this submission
            if self._last_error is not None:
                raise self._last_error
            return self._last_outcome

        log.debug("Folded %d partial result(s); %d descriptor(s) manipulated", folded, len(self._accumulated.manipulated))

        if not grew or self._on_merged is None:
            self._last_error = None
            self._last_outcome = MergeOutcome(manipulations=self._accumulated)
            return self._last_outcome

        try:
            outcome = self._on_merged(self._accumulated)
        except ManipulationError as exc:
            self._last_error = exc
            raise
        except Exception as exc:
            err = MergeError(f"Merge task failed: {exc}")
            err.__cause__ = exc
            self._last_error = err
            raise err

        self._last_error = None
        self._last_outcome = outcome
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
