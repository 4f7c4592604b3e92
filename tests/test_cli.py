import json
from pathlib import Path

import pytest

from pom_support import read_model
from pomalign.cli import main, parse_defines
from pomalign.core.errors import ConfigurationError


def test_parse_defines():
    assert parse_defines(["versionSuffix=rebuild-1", "flag", "a=b=c"]) == {
        "versionSuffix": "rebuild-1",
        "flag": "true",
        "a": "b=c",
    }
    assert parse_defines(None) == {}
    with pytest.raises(ConfigurationError):
        parse_defines(["=oops"])


def test_run_json_output(project: Path, capsys):
    rc = main(["run", str(project / "pom.xml"), "-DversionSuffix=rebuild-1", "--json"])

    assert rc == 0
    body = json.loads(capsys.readouterr().out)
    assert body["state"] == "REPORTED"
    assert body["execution_root"] == "org.example:root:1.0-rebuild-1"
    assert read_model(project / "child" / "pom.xml").version == "1.0-rebuild-1"


def test_run_text_output_when_skipped(project: Path, capsys):
    rc = main(["run", str(project)])

    assert rc == 0
    out = capsys.readouterr().out
    assert "state: SKIPPED" in out
    assert "skipped: no transformer enabled" in out


def test_run_failure_exit_code(tmp_path: Path, capsys):
    rc = main(["run", str(tmp_path / "missing" / "pom.xml"), "-D", "versionSuffix=x"])

    assert rc == 1
    assert "error: Project cannot be found" in capsys.readouterr().err


def test_transformers_listing(capsys):
    assert main(["transformers"]) == 0
    out = capsys.readouterr().out
    assert "project-version" in out
    assert "fingerprint:" in out


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "usage: pomalign" in capsys.readouterr().out
