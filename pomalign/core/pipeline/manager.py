"""
Entry point of the manipulation pipeline.

    manager = ManipulationManager()
    run = manager.run("path/to/pom.xml", {"versionSuffix": "rebuild-1"})

run() drives one entry through the state machine:

    IDLE -> GATED_CHECK -> CONFIG_RESOLVED -> SCANNED -> TRANSFORMED -> MERGED -> WRITTEN -> REPORTED

with SKIPPED (kill switch, nothing enabled, marker present, already covered)
and FAILED as terminal exits. Scan and transform happen on the caller thread;
merge, write and report happen on the session's merge worker.

Hosts that read descriptors lazily open a session once and route every read
through read_descriptor(); repeated entries for the same root are folded by
the merge worker and short-circuited once covered.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Callable, Iterator, List, Mapping, Optional

from pomalign.core.bridge import HostBridge
from pomalign.core.config import ConfigIO, classify_properties
from pomalign.core.config.settings import (
    CORE_KEYS,
    DEPRECATED_PROPERTIES,
    KILL_SWITCH,
    PARSE_POM_TEMPLATES,
    get_bool,
)
from pomalign.core.errors import ConfigurationError, ManipulationError
from pomalign.core.io import PomIO
from pomalign.core.io.pom_io import POM_FILE
from pomalign.core.observability.metrics import inc_run, inc_written
from pomalign.core.report import (
    ProjectComparator,
    read_previous_report,
    write_json_report,
    write_text_report,
)
from pomalign.core.session import (
    ManipulationSession,
    Manipulations,
    ManipulationsMerger,
    MergeOutcome,
    SessionRegistry,
)
from pomalign.core.transformers import TransformerRegistry

from .run import PipelineRun
from .state_machine import PipelineState

log = logging.getLogger("pomalign.pipeline")


def _entry_file(pom: Path) -> Path:
    return pom / POM_FILE if pom.is_dir() else pom


class ManipulationManager:
    def __init__(
        self,
        *,
        registry_factory: Optional[Callable[[], TransformerRegistry]] = None,
        sessions: Optional[SessionRegistry] = None,
        config_io: Optional[ConfigIO] = None,
        comparator: Optional[ProjectComparator] = None,
    ):
        self.registry_factory = registry_factory or TransformerRegistry
        self.sessions = sessions or SessionRegistry()
        self.config_io = config_io or ConfigIO()
        self.comparator = comparator or ProjectComparator()
        self._pom_ios: List[PomIO] = []

    # ---- entry contract -----------------------------------------------------

    def run(
        self,
        pom_file: Optional[str | Path],
        properties: Optional[Mapping[str, object]] = None,
        bridge: Optional[HostBridge] = None,
    ) -> PipelineRun:
        if pom_file is None or not str(pom_file).strip():
            raise ConfigurationError("No entry descriptor given")
        pom = Path(pom_file)
        root = (pom if pom.is_dir() else pom.parent).resolve()

        with self.session(root, properties, bridge) as session:
            return self.drive(session, pom, wait=True)

    @contextmanager
    def session(
        self,
        root_dir: str | Path,
        properties: Optional[Mapping[str, object]] = None,
        bridge: Optional[HostBridge] = None,
    ) -> Iterator[ManipulationSession]:
        root = Path(root_dir).resolve()
        session = self.sessions.open(root, lambda: self._new_session(root, properties, bridge))
        try:
            yield session
            session.wait_pending()
        finally:
            self.sessions.close(root)
            if session.pom_io is not None and session.pom_io.has_temporary_files:
                self._pom_ios.append(session.pom_io)

    def read_descriptor(self, session: ManipulationSession, pom_file: str | Path) -> Path:
        """
        Lazy entry: run the pipeline for a descriptor the host is about to read
        and return the file the host should load. In-place mode does not wait
        for the merge (pending work is joined when the session closes);
        side-channel mode waits so the temporary file exists on return.
        """
        pom = _entry_file(Path(pom_file)).resolve()
        self.drive(session, pom, wait=not session.in_place)
        if session.in_place:
            return pom
        session.wait_pending()
        return session.relocations.get(pom, pom)

    def dispose(self) -> None:
        """Delete the temporary descriptors written in side-channel mode."""
        for pom_io in self._pom_ios:
            pom_io.dispose()
        self._pom_ios.clear()

    # ---- driver -------------------------------------------------------------

    def _new_session(
        self,
        root: Path,
        properties: Optional[Mapping[str, object]],
        bridge: Optional[HostBridge],
    ) -> ManipulationSession:
        session = ManipulationSession(root, properties, bridge=bridge, registry=self.registry_factory())
        session.merger = ManipulationsMerger(on_merged=partial(self._write_and_report, session))
        return session

    def drive(self, session: ManipulationSession, pom_file: str | Path, *, wait: bool = True) -> PipelineRun:
        run = PipelineRun(entry=Path(pom_file))
        try:
            self._drive(session, run, wait)
        except ManipulationError as exc:
            self._finish_failed(run, exc)
            raise
        except Exception as exc:
            err = ManipulationError(f"Unexpected failure: {exc}", file=run.entry)
            self._finish_failed(run, err)
            raise err from exc
        return run

    def _drive(self, session: ManipulationSession, run: PipelineRun, wait: bool) -> None:
        run.advance(PipelineState.GATED_CHECK)
        if get_bool(session.user_properties, KILL_SWITCH, False):
            log.info("Manipulation disabled via %s", KILL_SWITCH)
            self._finish_skipped(run, "disabled")
            return

        entry = _entry_file(run.entry)
        with session.init_lock:
            if not session.resolved:
                self._init_session(session, entry)
        run.warnings.extend(session.warnings)
        run.advance(PipelineState.CONFIG_RESOLVED)

        if not session.is_enabled():
            self._finish_skipped(run, "disabled")
            return
        if not session.registry.enabled():
            log.info("No transformer is enabled; nothing to do")
            self._finish_skipped(run, "no transformer enabled")
            return

        if not entry.is_file():
            raise ConfigurationError("Project cannot be found", file=entry)
        scan = session.pom_io.parse_project(entry)
        root = scan.execution_root
        run.warnings.extend(scan.warnings)
        run.descriptors = len(scan.descriptors)
        run.execution_root = root.key
        run.advance(PipelineState.SCANNED, descriptors=len(scan.descriptors))

        with session.init_lock:
            if session.execution_root is None:
                session.execution_root = root
                session.original_root_key = root.key
                if session.previous_report is None:
                    session.previous_report = read_previous_report(session.json_report_path, root.key)
        run.original_root = session.original_root_key

        if session.marker_path.exists():
            log.info("Marker %s exists; skipping", session.marker_path)
            self._finish_skipped(run, "marker present")
            return
        if session.merger.query(lambda m: m.covers(scan.descriptors)).result():
            log.debug("Every descriptor under %s was already processed in this session", entry)
            self._finish_skipped(run, "already covered")
            return

        originals = {d.path: d.copy() for d in scan.descriptors}
        changed, ran = session.registry.apply(scan.descriptors)
        run.transformers = ran
        run.changed = sorted(d.path for d in changed)
        run.execution_root = root.key
        run.advance(PipelineState.TRANSFORMED, changed=len(changed))

        future = session.merger.submit(Manipulations.of(scan.descriptors, changed, originals))
        session.track(future)
        run.advance(PipelineState.MERGED)

        if wait:
            self._complete(session, run, future.result())
        else:
            run.future = future
            future.add_done_callback(partial(self._complete_later, session, run))

    def _finish_skipped(self, run: PipelineRun, reason: str) -> None:
        run.skip(reason)
        inc_run(PipelineState.SKIPPED.value)

    def _finish_failed(self, run: PipelineRun, exc: ManipulationError) -> None:
        run.fail(exc)
        inc_run(PipelineState.FAILED.value)
        log.error("Pipeline failed for %s: %s", run.entry, exc)

    def _complete(self, session: ManipulationSession, run: PipelineRun, outcome: MergeOutcome) -> None:
        if outcome.changed:
            run.written = list(outcome.written)
            run.relocations = dict(outcome.relocations)
            run.advance(PipelineState.WRITTEN, written=len(outcome.written))
            run.report = outcome.report
            run.marker = outcome.marker
            run.advance(PipelineState.REPORTED)
        else:
            log.info("Nothing changed for %s", run.entry)
        inc_run(run.state.value)

    def _complete_later(self, session: ManipulationSession, run: PipelineRun, future: Future) -> None:
        exc = future.exception()
        if exc is None:
            self._complete(session, run, future.result())
        else:
            # raised to the submitter through session.wait_pending()
            run.fail(exc)
            inc_run(PipelineState.FAILED.value)

    def _init_session(self, session: ManipulationSession, entry: Path) -> None:
        session.resolve(self.config_io.parse(entry.parent))
        self._check_properties(session)

        session.pom_io = PomIO(parse_templates=get_bool(session.properties, PARSE_POM_TEMPLATES, True))

        session.registry.init_all(session)
        session.compute_common_state()

        session.previous_report = session.bridge.read_report()
        session.resolved = True
        log.info(
            "Session for %s: transformers=%s enabled=%s in_place=%s",
            session.root_dir,
            session.registry.names(),
            [t.name for t in session.registry.enabled()],
            session.in_place,
        )

    def _check_properties(self, session: ManipulationSession) -> None:
        known = dict(CORE_KEYS)
        known.update(session.registry.config_keys())
        unknown, deprecated = classify_properties(session.properties, known)

        for key in unknown:
            msg = f"Unknown configuration value {key}"
            log.warning(msg)
            session.warnings.append(msg)

        if not deprecated:
            return
        if not get_bool(session.properties, DEPRECATED_PROPERTIES, False):
            key = sorted(deprecated)[0]
            raise ConfigurationError(
                f"Deprecated configuration value {key}={session.properties[key]} "
                f"(matched {deprecated[key]}); set {DEPRECATED_PROPERTIES}=true to allow it"
            )
        for key, matcher in sorted(deprecated.items()):
            msg = f"Deprecated configuration value {key} (matched {matcher})"
            log.warning(msg)
            session.warnings.append(msg)

    # ---- merge worker -------------------------------------------------------

    def _write_and_report(self, session: ManipulationSession, manipulations: Manipulations) -> MergeOutcome:
        changed = list(manipulations.manipulated)
        relocations = {}
        if session.in_place:
            written = session.pom_io.write_poms(changed)
            inc_written("in_place", len(written))
        else:
            relocations = session.pom_io.write_temporary_poms(changed)
            written = list(relocations.values())
            session.relocations.update(relocations)
            inc_written("side_channel", len(written))

        root = session.execution_root
        report = self.comparator.build_report(
            manipulations, root, session.original_root_key, session.previous_report
        )
        text = self.comparator.to_text(report)
        log.info("Alignment report:\n%s", text)

        if session.txt_report_path is not None:
            write_text_report(session.txt_report_path, text)
        write_json_report(session.json_report_path, report)

        marker = None
        if session.in_place:
            # marker only once the report is persisted
            marker = session.create_marker()
        else:
            session.bridge.store_report(relocations.get(root.path, root.path), report)

        return MergeOutcome(
            manipulations=manipulations,
            written=written,
            report=report,
            marker=marker,
            relocations=relocations,
        )

