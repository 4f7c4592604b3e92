from __future__ import annotations

from collections import Counter
from typing import Dict, Optional

from prometheus_client import Counter as PromCounter

# Named counters (in-process snapshot)
_NAMED = Counter()

_PROM_RUNS = PromCounter(
    "pomalign_pipeline_runs_total",
    "Pipeline runs by final state",
    ["outcome"],
)

_PROM_TRANSFORMERS = PromCounter(
    "pomalign_transformer_runs_total",
    "Transformer invocations",
    ["transformer"],
)

_PROM_WRITTEN = PromCounter(
    "pomalign_descriptors_written_total",
    "Descriptors written by the rewriter",
    ["mode"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the named counters. Prometheus counters are process
    wide and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_run(outcome: str) -> None:
    o = (outcome or "unknown").lower()
    _NAMED["pipeline_runs_total"] += 1
    _NAMED[f"pipeline_{o}"] += 1
    _PROM_RUNS.labels(outcome=o).inc()


def inc_transformer(name: str) -> None:
    _NAMED[f"transformer_{name}"] += 1
    _PROM_TRANSFORMERS.labels(transformer=name).inc()


def inc_written(mode: str, count: Optional[int] = 1) -> None:
    n = int(count or 0)
    if n <= 0:
        return
    _NAMED[f"written_{mode}"] += n
    _PROM_WRITTEN.labels(mode=mode).inc(n)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
