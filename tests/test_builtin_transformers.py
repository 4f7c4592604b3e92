from pathlib import Path

import pytest

from pom_support import read_model
from pomalign.core.errors import ConfigurationError
from pomalign.core.io import PomIO
from pomalign.core.pipeline import ManipulationManager
from pomalign.core.session import ManipulationSession
from pomalign.core.transformers import CommonState, DependencyOverride, TransformerRegistry
from pomalign.core.transformers.states import DependencyState


def _initialised(project: Path, props):
    session = ManipulationSession(project, props)
    session.resolve({})
    reg = TransformerRegistry()
    reg.init_all(session)
    session.compute_common_state()
    return session, reg


def _scan(project: Path):
    return PomIO().parse_project(project / "pom.xml").descriptors


def test_version_suffix_keeps_hierarchy_consistent(project: Path):
    _, reg = _initialised(project, {"versionSuffix": "rebuild-1"})
    root, child, grandchild = _scan(project)

    changed, ran = reg.apply([root, child, grandchild])

    assert ran == ["project-version"]
    assert changed == {root, child, grandchild}
    assert root.model.version == "1.0-rebuild-1"
    assert child.model.version == "1.0-rebuild-1"
    assert child.model.parent.version == "1.0-rebuild-1"
    assert grandchild.model.version is None
    assert grandchild.model.parent.version == "1.0-rebuild-1"
    managed = {d.artifact_id: d.version for d in root.model.dependency_management}
    assert managed == {"child": "1.0-rebuild-1", "junit": "4.13.2"}


def test_version_suffix_replaces_earlier_increment(project: Path):
    ManipulationManager().run(project / "pom.xml", {"versionSuffix": "rebuild-1"})
    (project / "target" / "pom-manip-ext-marker.txt").unlink()

    ManipulationManager().run(project / "pom.xml", {"versionSuffix": "rebuild-2"})

    assert read_model(project / "pom.xml").version == "1.0-rebuild-2"
    assert read_model(project / "child" / "pom.xml").parent.version == "1.0-rebuild-2"


def test_version_override(project: Path):
    _, reg = _initialised(project, {"versionOverride": "5.0.0"})
    root, child, grandchild = _scan(project)

    reg.apply([root, child, grandchild])

    assert root.model.version == "5.0.0"
    assert grandchild.model.parent.version == "5.0.0"


def test_dependency_override_for_every_module(project: Path):
    _, reg = _initialised(project, {"dependencyOverride.junit:junit@*": "4.13.3"})
    root, child, grandchild = _scan(project)

    changed, _ = reg.apply([root, child, grandchild])

    assert changed == {root, grandchild}
    junit = next(d for d in root.model.dependency_management if d.artifact_id == "junit")
    assert junit.version == "4.13.3"
    assert grandchild.model.dependencies[0].version == "4.13.3"


def test_dependency_override_scoped_to_module_and_removal(project: Path):
    _, reg = _initialised(project, {
        "dependencyOverride.junit:junit@*": "4.13.3",
        "dependencyOverride.junit:junit@org.example:root": "",
    })
    root, child, grandchild = _scan(project)

    reg.apply([root, child, grandchild])

    junit = next(d for d in root.model.dependency_management if d.artifact_id == "junit")
    assert junit.version is None
    assert grandchild.model.dependencies[0].version == "4.13.3"


def test_malformed_dependency_override_is_rejected():
    with pytest.raises(ConfigurationError):
        DependencyOverride.parse("dependencyOverride.junit@*", "dependencyOverride.", "1")


def test_dependency_override_relaxes_strict_validation(project: Path):
    session, _ = _initialised(project, {
        "strictPropertyValidation": "true",
        "dependencyOverride.junit:junit@*": "4.13.3",
    })

    assert session.get_state(DependencyState).is_enabled()
    assert session.get_state(CommonState).strict_property_validation == 0


def test_strict_validation_kept_without_overrides(project: Path):
    session, _ = _initialised(project, {"strictPropertyValidation": "revert"})

    assert session.get_state(CommonState).strict_property_validation == 2


def test_property_override_updates_existing_only(project: Path):
    _, reg = _initialised(project, {"propertyOverride.java.version": "17", "propertyOverride.missing": "x"})
    root, child, grandchild = _scan(project)

    changed, _ = reg.apply([root, child, grandchild])

    assert changed == {root}
    assert root.model.properties == {"java.version": "17"}


def test_property_override_is_written_in_place(project: Path):
    run = ManipulationManager().run(project / "pom.xml", {"propertyOverride.java.version": "17"})

    assert run.transformers == ["property-override"]
    text = (project / "pom.xml").read_text(encoding="utf-8")
    assert "<java.version>17</java.version>" in text
