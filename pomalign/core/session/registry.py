from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List

from pomalign.core.errors import ManipulationError

from .session import ManipulationSession

log = logging.getLogger("pomalign.session")


class SessionRegistry:
    """
    Active sessions keyed by multi-module root directory. A root has at most
    one active session; opening a second one fails instead of sharing state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[Path, ManipulationSession] = {}

    def open(self, root_dir: Path, factory: Callable[[], ManipulationSession]) -> ManipulationSession:
        root = Path(root_dir).resolve()
        with self._lock:
            if root in self._sessions:
                raise ManipulationError("A manipulation session is already active for this root", file=root)
            session = factory()
            self._sessions[root] = session
        log.debug("Opened session for %s", root)
        return session

    def close(self, root_dir: Path) -> None:
        root = Path(root_dir).resolve()
        with self._lock:
            session = self._sessions.pop(root, None)
        if session is not None:
            session.close()
            log.debug("Closed session for %s", root)

    def active(self) -> List[Path]:
        with self._lock:
            return sorted(self._sessions)
