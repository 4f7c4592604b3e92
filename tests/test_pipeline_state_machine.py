from pathlib import Path

import pytest

from pomalign.core.errors import ScanError
from pomalign.core.pipeline import (
    PipelineRun,
    PipelineState,
    allowed_next,
    can_transition,
    ensure_transition,
    is_terminal,
)

S = PipelineState


def test_happy_path_transitions():
    chain = [S.IDLE, S.GATED_CHECK, S.CONFIG_RESOLVED, S.SCANNED, S.TRANSFORMED, S.MERGED, S.WRITTEN, S.REPORTED]
    for src, dst in zip(chain, chain[1:]):
        assert can_transition(src, dst)


@pytest.mark.parametrize("src", [S.GATED_CHECK, S.CONFIG_RESOLVED, S.SCANNED])
def test_skip_is_allowed_before_transforming(src):
    assert can_transition(src, S.SKIPPED)


@pytest.mark.parametrize("src", [S.IDLE, S.TRANSFORMED, S.MERGED, S.WRITTEN])
def test_skip_is_not_allowed_elsewhere(src):
    assert not can_transition(src, S.SKIPPED)


def test_illegal_jump_raises():
    with pytest.raises(ValueError):
        ensure_transition(S.SCANNED, S.WRITTEN)


def test_terminal_states_are_final():
    for state in (S.REPORTED, S.SKIPPED, S.FAILED):
        assert is_terminal(state)
        assert allowed_next(state) == {}
        assert not can_transition(state, S.GATED_CHECK)
    assert not is_terminal(S.MERGED)


def test_failed_reachable_from_any_live_state():
    for state in (S.IDLE, S.GATED_CHECK, S.SCANNED, S.MERGED):
        assert allowed_next(state)[S.FAILED.value] is True


def test_run_records_events_and_failure():
    run = PipelineRun(entry=Path("pom.xml"))
    run.advance(S.GATED_CHECK)
    run.advance(S.CONFIG_RESOLVED)
    run.fail(ScanError("broken", file="child/pom.xml"))

    assert run.state == S.FAILED
    assert [e.state for e in run.events] == [S.GATED_CHECK, S.CONFIG_RESOLVED, S.FAILED]
    body = run.to_dict()
    assert body["error"]["kind"] == "scan"
    assert body["error"]["file"] == "child/pom.xml"
    assert body["events"][-1]["payload"] == {"kind": "scan"}
    assert body["events"][0]["ts"].endswith("Z")


def test_skip_records_reason():
    run = PipelineRun(entry=Path("pom.xml"))
    run.advance(S.GATED_CHECK)
    run.skip("disabled")

    assert run.skipped
    assert run.to_dict()["skip_reason"] == "disabled"
    with pytest.raises(ValueError):
        run.advance(S.CONFIG_RESOLVED)
