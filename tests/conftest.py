from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

from pom_support import CHILD_POM, GRANDCHILD_POM, ROOT_POM, VersionBump, write_pom
from pomalign.api.main import app
from pomalign.core.observability.metrics import reset_metrics
from pomalign.core.pipeline import ManipulationManager
from pomalign.core.transformers import TransformerRegistry


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """root -> child -> grandchild; returns the root directory."""
    root = tmp_path / "root"
    write_pom(root, ROOT_POM)
    write_pom(root / "child", CHILD_POM)
    write_pom(root / "child" / "grandchild", GRANDCHILD_POM)
    return root.resolve()


@pytest.fixture()
def make_manager():
    """Manager whose sessions only run the given transformer instances."""

    def _make(*transformers) -> ManipulationManager:
        ts: List = list(transformers)
        return ManipulationManager(
            registry_factory=lambda: TransformerRegistry(ts, load_plugins=False),
        )

    return _make


@pytest.fixture()
def bump() -> VersionBump:
    return VersionBump({"child": "1.1"})


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)
