from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Sequence

from pomalign.core.errors import ConfigurationError, ManipulationError
from pomalign.core.manifest import manifest_information
from pomalign.core.pipeline import ManipulationManager, PipelineRun
from pomalign.core.transformers import TransformerRegistry

log = logging.getLogger("pomalign.cli")


def parse_defines(values: Optional[List[str]]) -> Dict[str, str]:
    """``-Dkey=value`` pairs; a bare ``-Dkey`` means ``key=true`` as on the Maven command line."""
    out: Dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not key:
            raise ConfigurationError(f"Malformed property definition {raw!r}")
        out[key] = value if sep else "true"
    return out


def _print_run(run: PipelineRun) -> None:
    print(f"state: {run.state.value}")
    if run.skip_reason:
        print(f"skipped: {run.skip_reason}")
    if run.execution_root:
        print(f"execution root: {run.execution_root}")
    for p in run.written:
        print(f"written: {p}")
    if run.marker:
        print(f"marker: {run.marker}")
    for w in run.warnings:
        print(f"warning: {w}")


def run_cmd(args: argparse.Namespace) -> int:
    try:
        properties = parse_defines(args.defines)
        run = ManipulationManager().run(args.pom, properties)
    except ManipulationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(run.to_dict(), indent=2))
    else:
        _print_run(run)
    return 0


def transformers_cmd(args: argparse.Namespace) -> int:
    reg = TransformerRegistry()
    infos = reg.describe()
    if args.json:
        print(json.dumps({"fingerprint": reg.fingerprint, "transformers": [i.to_dict() for i in infos]}, indent=2))
        return 0
    for info in infos:
        print(f"{info.priority:>4}  {info.name}  {info.version}")
    print(f"fingerprint: {reg.fingerprint}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pomalign",
        description="Align versions across a multi-module Maven descriptor tree.",
    )
    parser.add_argument("--version", action="version", version=manifest_information())
    parser.add_argument("--verbose", action="store_true")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    run_parser = subparsers.add_parser("run", help="Run the manipulation pipeline on an entry descriptor.")
    run_parser.add_argument("pom", help="Entry pom.xml (or its directory).")
    run_parser.add_argument(
        "-D",
        action="append",
        dest="defines",
        metavar="key=value",
        help="Configuration property (repeatable), e.g. -DversionSuffix=rebuild-1",
    )
    run_parser.add_argument("--json", action="store_true", help="Print the run result as JSON.")
    run_parser.set_defaults(handler=run_cmd)

    tr_parser = subparsers.add_parser("transformers", help="List installed transformers in execution order.")
    tr_parser.add_argument("--json", action="store_true")
    tr_parser.set_defaults(handler=transformers_cmd)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not hasattr(args, "handler"):
        parser.print_help()
        return 2

    return int(args.handler(args))


if __name__ == "__main__":
    sys.exit(main())


__all__ = ["main"]
