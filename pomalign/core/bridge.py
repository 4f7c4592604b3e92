"""
Hand-off point between the pipeline and the host build session.

The host threads a mutable property bag through its own session object; the
pipeline reads a previously stored report from it before scanning and, in
side-channel mode, stores the rewritten execution-root path and the report
body into it. The bag is keyed by a fixed string, so one bag serves a single
root at a time.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, MutableMapping, Optional

from pydantic import ValidationError

from pomalign.core.report.models import PMEReport

log = logging.getLogger("pomalign.bridge")

REPORT_USER_PROPERTY_KEY = "pom-manipulation-report"


class HostBridge:
    def __init__(self, properties: Optional[MutableMapping[str, str]] = None):
        self.properties: MutableMapping[str, str] = properties if properties is not None else {}
        self.pom: Optional[Path] = None
        self._lock = threading.Lock()

    def read_report(self) -> Optional[PMEReport]:
        raw = self.properties.get(REPORT_USER_PROPERTY_KEY)
        if not raw:
            return None
        try:
            report = PMEReport.from_json(raw)
        except (ValidationError, ValueError) as exc:
            log.warning("Ignoring malformed report in host properties: %s", exc)
            return None
        log.debug("Read previous report for %s from host properties", report.gav.ref())
        return report

    def store_report(self, pom: Path, report: PMEReport) -> None:
        with self._lock:
            self.pom = Path(pom)
            self.properties[REPORT_USER_PROPERTY_KEY] = report.to_json()
        log.info("Handed rewritten execution root %s to host", pom)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self.properties)
