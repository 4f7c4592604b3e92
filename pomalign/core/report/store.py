from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pomalign.core.errors import WriteError
from pomalign.core.model import ProjectRef

from .models import PMEReport

log = logging.getLogger("pomalign.report")


def write_json_report(path: Path, report: PMEReport) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.to_json(), encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Unable to write JSON report: {exc}", file=path) from exc
    log.info("Wrote JSON report %s", path)
    return path


def write_text_report(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Unable to write text report: {exc}", file=path) from exc
    log.info("Wrote text report %s", path)
    return path


def read_json_report(path: Path) -> Optional[PMEReport]:
    """A missing or unreadable report is not an error; it just cannot be chained."""
    if not path.is_file():
        return None
    try:
        return PMEReport.from_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError, ValueError) as exc:
        log.warning("Ignoring unreadable report %s: %s", path, exc)
        return None


def read_previous_report(path: Path, identity: ProjectRef) -> Optional[PMEReport]:
    report = read_json_report(path)
    if report is None:
        return None
    if not report.gav.ref().versionless_equals(identity):
        log.debug("Report %s belongs to %s, not %s", path, report.gav.ref(), identity)
        return None
    return report
