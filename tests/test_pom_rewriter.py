from pathlib import Path

from pom_support import CHILD_POM, ROOT_POM, read_model, write_pom
from pomalign.core.io import PROVENANCE_MARKER, PomIO, determine_eol, with_provenance
from pomalign.core.model import Dependency


def _scan(root: Path):
    return PomIO().parse_project(root / "pom.xml").descriptors


def test_unchanged_descriptor_is_byte_identical(project: Path, tmp_path: Path):
    _, child, _ = _scan(project)
    out = tmp_path / "out.xml"

    PomIO().write(child, out)

    assert out.read_bytes() == (project / "child" / "pom.xml").read_bytes()


def test_execution_root_gets_single_provenance_comment(project: Path, tmp_path: Path):
    root = _scan(project)[0]
    out = tmp_path / "out.xml"

    PomIO().write(root, out)

    text = out.read_text(encoding="utf-8")
    assert text.startswith(ROOT_POM.rstrip("\n"))
    assert text.count(PROVENANCE_MARKER) == 1
    assert text.rstrip().endswith("-->")


def test_version_change_touches_only_that_line(project: Path):
    _, child, _ = _scan(project)
    child.model.version = "1.1"

    PomIO().write(child, child.path)

    before = CHILD_POM.splitlines()
    after = child.path.read_text(encoding="utf-8").splitlines()
    assert len(before) == len(after)
    diff = [(a, b) for a, b in zip(before, after) if a != b]
    assert diff == [("    <version>1.0</version>", "    <version>1.1</version>")]
    assert "<!-- keep this comment -->" in after[12]


def test_crlf_line_endings_are_preserved(tmp_path: Path):
    root = tmp_path / "proj"
    pom = root / "pom.xml"
    root.mkdir()
    pom.write_bytes(CHILD_POM.replace("\n", "\r\n").encode("utf-8"))

    d = PomIO().parse_project(pom).descriptors[0]
    d.model.version = "2.0"
    d.model.properties["added"] = "yes"
    PomIO().write(d, pom)

    raw = pom.read_bytes()
    assert b"<version>2.0</version>" in raw
    assert b"<added>yes</added>" in raw
    assert raw.count(b"\n") == raw.count(b"\r\n")
    assert determine_eol(raw.decode("utf-8")) == "\r\n"


def test_added_dependency_is_indented_like_siblings(project: Path):
    root = _scan(project)[0]
    root.model.dependency_management.append(Dependency("org.slf4j", "slf4j-api", "2.0.9"))

    PomIO().write(root, root.path)

    text = root.path.read_text(encoding="utf-8")
    assert "            <dependency>\n                <groupId>org.slf4j</groupId>" in text
    deps = read_model(root.path).dependency_management
    assert [d.artifact_id for d in deps] == ["child", "junit", "slf4j-api"]


def test_removed_version_element(project: Path):
    root = _scan(project)[0]
    junit = next(d for d in root.model.dependency_management if d.artifact_id == "junit")
    junit.version = None

    PomIO().write(root, root.path)

    junit = next(d for d in read_model(root.path).dependency_management if d.artifact_id == "junit")
    assert junit.version is None
    assert junit.scope == "test"


def test_provenance_comment_is_replaced_not_duplicated():
    outtro = "\n<!--\nModified by pom-align 0.0.1\n-->\n"

    updated = with_provenance(outtro, "\n", comment="Modified by pom-align 9.9.9")

    assert updated == "\n<!--\nModified by pom-align 9.9.9\n-->\n"
    assert updated.count(PROVENANCE_MARKER) == 1


def test_rewritten_root_is_detected_as_incremental(project: Path):
    root = _scan(project)[0]
    assert not root.is_incremental_run

    PomIO().write(root, root.path)
    PomIO().write(_scan(project)[0], root.path)

    again = _scan(project)[0]
    assert again.is_incremental_run
    assert root.path.read_text(encoding="utf-8").count(PROVENANCE_MARKER) == 1


def test_temporary_poms_relocate_parent_and_modules(project: Path):
    root, child, grandchild = _scan(project)
    pom_io = PomIO()

    relocations = pom_io.write_temporary_poms([root, child])

    tmp_root = project / "pom-manipulated.xml"
    tmp_child = project / "child" / "pom-manipulated.xml"
    assert relocations == {root.path: tmp_root.resolve(), child.path: tmp_child.resolve()}
    assert read_model(tmp_child).parent.relative_path == "../pom-manipulated.xml"
    assert read_model(tmp_root).modules == ["child/pom-manipulated.xml"]
    # grandchild was not relocated, the child keeps pointing at the original
    assert read_model(tmp_child).modules == ["grandchild"]
    # descriptors and originals are untouched
    assert child.model.parent.relative_path is None
    assert (project / "child" / "pom.xml").read_text(encoding="utf-8") == CHILD_POM

    pom_io.dispose()
    assert not tmp_root.exists()
    assert not tmp_child.exists()


def test_xml_declaration_encoding_is_kept(tmp_path: Path):
    text = CHILD_POM.replace('encoding="UTF-8"', 'encoding="ISO-8859-1"').replace(
        "<!-- keep this comment -->", "<!-- café -->"
    )
    pom = tmp_path / "pom.xml"
    pom.write_bytes(text.encode("iso-8859-1"))

    d = PomIO().parse_project(pom).descriptors[0]
    d.model.version = "1.5"
    PomIO().write(d, pom)

    decoded = pom.read_bytes().decode("iso-8859-1")
    assert "<!-- café -->" in decoded
    assert "<version>1.5</version>" in decoded


def test_untouched_file_round_trips_with_root_pom(tmp_path: Path):
    root = write_pom(tmp_path / "r", ROOT_POM)
    d = PomIO().parse_project(root).descriptors[0]
    d.is_execution_root = False

    PomIO().write(d, root)

    assert root.read_text(encoding="utf-8") == ROOT_POM
