from pathlib import Path

from pomalign.core.bridge import REPORT_USER_PROPERTY_KEY, HostBridge
from pomalign.core.io import PomIO
from pomalign.core.model import Dependency, ProjectRef
from pomalign.core.report import GAV, PMEReport, ProjectComparator, read_previous_report, write_json_report
from pomalign.core.session import Manipulations


def test_gav_accepts_alias_spellings():
    for key in ("originalGAV", "originalGav", "original_gav"):
        gav = GAV.model_validate({"groupId": "g", "artifactId": "a", "version": "1", key: "g:a:0"})
        assert gav.original_gav == "g:a:0"

    dumped = GAV.of(ProjectRef("g", "a", "1"), "g:a:0").model_dump(by_alias=True)
    assert dumped == {"groupId": "g", "artifactId": "a", "version": "1", "originalGav": "g:a:0"}


def test_report_json_roundtrip_omits_empty_original():
    report = PMEReport(gav=GAV.of(ProjectRef("g", "a", "1")))

    text = report.to_json()

    assert "originalG" not in text
    assert PMEReport.from_json(text) == report


def test_compare_reports_dependency_changes(project: Path):
    root = PomIO().parse_project(project / "pom.xml").descriptors[0]
    before = root.copy()
    junit = next(d for d in root.model.dependency_management if d.artifact_id == "junit")
    junit.version = "5.0"
    junit.group_id = "org.junit"
    root.model.dependency_management.append(Dependency("org.slf4j", "slf4j-api", "2.0.9"))
    root.model.properties["java.version"] = "17"

    diffs = ProjectComparator().compare(before, root)

    assert {(d["type"], d["change"], d["key"]) for d in diffs} == {
        ("managedDependency", "relocated", "junit:junit:jar:"),
        ("managedDependency", "changed", "org.junit:junit:jar:"),
        ("managedDependency", "added", "org.slf4j:slf4j-api:jar:"),
        ("property", "changed", "java.version"),
    }


def test_build_report_lists_manipulated_modules_in_depth_order(project: Path):
    root, child, grandchild = PomIO().parse_project(project / "pom.xml").descriptors
    originals = {d.path: d.copy() for d in (root, child, grandchild)}
    grandchild.model.properties["p"] = "1"
    child.model.version = "1.1"

    m = Manipulations.of([root, child, grandchild], [grandchild, child], originals)
    report = ProjectComparator().build_report(m, root, root.key)

    assert [mod.gav.artifact_id for mod in report.modules] == ["child", "grandchild"]
    assert report.gav.original_gav == "org.example:root:1.0"


def test_previous_report_must_match_project(tmp_path: Path):
    path = tmp_path / "alignmentReport.json"
    write_json_report(path, PMEReport(gav=GAV.of(ProjectRef("g", "a", "2"), "g:a:1")))

    assert read_previous_report(path, ProjectRef("g", "a", "3")).gav.original_gav == "g:a:1"
    assert read_previous_report(path, ProjectRef("g", "b", "2")) is None
    assert read_previous_report(tmp_path / "none.json", ProjectRef("g", "a", "2")) is None


def test_bridge_store_and_read(tmp_path: Path):
    props = {}
    bridge = HostBridge(props)
    report = PMEReport(gav=GAV.of(ProjectRef("g", "a", "2"), "g:a:1"))

    bridge.store_report(tmp_path / "pom-manipulated.xml", report)

    assert REPORT_USER_PROPERTY_KEY in props
    assert HostBridge(props).read_report() == report
    assert bridge.pom == tmp_path / "pom-manipulated.xml"
