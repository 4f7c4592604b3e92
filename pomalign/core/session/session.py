from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pomalign.core.bridge import HostBridge
from pomalign.core.config.settings import (
    KILL_SWITCH,
    REPORT_JSON_OUTPUT_FILE,
    REPORT_TXT_OUTPUT_FILE,
    REWRITE_CHANGED,
    get_bool,
    handle_config_precedence,
    normalize_properties,
)
from pomalign.core.errors import WriteError
from pomalign.core.model import Descriptor, ProjectRef
from pomalign.core.transformers.states import CommonState, DependencyState

from .merger import ManipulationsMerger

log = logging.getLogger("pomalign.session")

TARGET_DIR = "target"
MARKER_FILE = "pom-manip-ext-marker.txt"
DEFAULT_JSON_REPORT = "alignmentReport.json"

S = TypeVar("S")


class ManipulationSession:
    """
    Per-root context threaded through every pipeline entry for that root:
    resolved configuration, transformer states, the merge worker and the
    chaining information for the report.
    """

    def __init__(
        self,
        root_dir: Path,
        user_properties: Optional[Mapping[str, object]] = None,
        *,
        bridge: Optional[HostBridge] = None,
        registry: Any = None,
        merger: Optional[ManipulationsMerger] = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.user_properties: Dict[str, str] = normalize_properties(user_properties)
        self.properties: Dict[str, str] = dict(self.user_properties)
        self.bridge = bridge if bridge is not None else HostBridge()
        self.registry = registry
        self.merger = merger
        self.pom_io = None
        self.resolved = False

        self.execution_root: Optional[Descriptor] = None
        self.original_root_key: Optional[ProjectRef] = None
        self.previous_report = None
        self.relocations: Dict[Path, Path] = {}
        self.warnings: List[str] = []

        self._states: Dict[type, Any] = {}
        self._pending: List[Future] = []
        self._lock = threading.Lock()
        # first-entry initialisation
        self.init_lock = threading.Lock()

    # ---- configuration ------------------------------------------------------

    def resolve(self, file_config: Mapping[str, str]) -> None:
        self.properties = handle_config_precedence(self.user_properties, file_config)
        self._states = {}
        self.set_state(CommonState.from_properties(self.properties))

    def is_enabled(self) -> bool:
        return not get_bool(self.properties, KILL_SWITCH, False)

    @property
    def in_place(self) -> bool:
        return get_bool(self.properties, REWRITE_CHANGED, True)

    def _resolve_path(self, value: str) -> Path:
        p = Path(value)
        return p if p.is_absolute() else self.root_dir / p

    @property
    def target_dir(self) -> Path:
        return self.root_dir / TARGET_DIR

    @property
    def marker_path(self) -> Path:
        return self.target_dir / MARKER_FILE

    @property
    def json_report_path(self) -> Path:
        value = (self.properties.get(REPORT_JSON_OUTPUT_FILE) or "").strip()
        return self._resolve_path(value) if value else self.target_dir / DEFAULT_JSON_REPORT

    @property
    def txt_report_path(self) -> Optional[Path]:
        value = (self.properties.get(REPORT_TXT_OUTPUT_FILE) or "").strip()
        return self._resolve_path(value) if value else None

    # ---- states -------------------------------------------------------------

    def set_state(self, state: Any) -> None:
        self._states[type(state)] = state

    def get_state(self, cls: Type[S]) -> Optional[S]:
        return self._states.get(cls)

    def compute_common_state(self) -> None:
        deps = self.get_state(DependencyState)
        common = self.get_state(CommonState)
        if deps is None or common is None:
            return
        if deps.is_enabled() and common.strict_property_validation != 0:
            log.warning("Dependency overrides are active; relaxing strictPropertyValidation to false")
            common.strict_property_validation = 0

    # ---- marker -------------------------------------------------------------

    def create_marker(self) -> Path:
        marker = self.marker_path
        try:
            marker.parent.mkdir(parents=True, exist_ok=True)
            marker.touch()
        except OSError as exc:
            raise WriteError(f"Unable to create marker file: {exc}", file=marker) from exc
        log.debug("Created marker %s", marker)
        return marker

    # ---- pending merges -----------------------------------------------------

    def track(self, future: Future) -> None:
        with self._lock:
            self._pending.append(future)

    def wait_pending(self) -> None:
        """Join every submission made through this session; the first failure is raised."""
        with self._lock:
            pending, self._pending = self._pending, []
        first_error = None
        for f in pending:
            exc = f.exception()
            if exc is not None and first_error is None:
                first_error = exc
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        if self.merger is not None:
            self.merger.shutdown(wait=True)
