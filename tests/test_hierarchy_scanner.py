from pathlib import Path

import pytest

from pom_support import CHILD_POM, ROOT_POM, write_pom
from pomalign.core.errors import ConfigurationError, ScanError
from pomalign.core.io import PomIO
from pomalign.core.model import ProjectRef


def test_scan_returns_execution_root_first(project: Path):
    scan = PomIO().parse_project(project / "pom.xml")

    assert [d.path for d in scan.descriptors] == [
        (project / "pom.xml").resolve(),
        (project / "child" / "pom.xml").resolve(),
        (project / "child" / "grandchild" / "pom.xml").resolve(),
    ]
    assert scan.execution_root.is_execution_root
    assert sum(1 for d in scan.descriptors if d.is_execution_root) == 1
    assert scan.warnings == []


def test_scan_accepts_directory_entry(project: Path):
    scan = PomIO().parse_project(project)
    assert scan.execution_root.key == ProjectRef("org.example", "root", "1.0")


def test_scan_links_hierarchy_and_depth(project: Path):
    root, child, grandchild = PomIO().parse_project(project / "pom.xml").descriptors

    assert root.is_inheritance_root
    assert not child.is_inheritance_root
    assert child.project_parent is root
    assert grandchild.project_parent is child
    # groupId and version inherited from the parent element
    assert grandchild.key == ProjectRef("org.example", "grandchild", "1.0")
    assert [d.depth for d in (root, child, grandchild)] == [0, 1, 2]


def test_parent_outside_tree_is_not_followed(project: Path):
    scan = PomIO().parse_project(project / "child" / "pom.xml")

    keys = [d.key.artifact_id for d in scan.descriptors]
    assert keys == ["child", "grandchild"]
    child = scan.descriptors[0]
    assert child.is_execution_root
    assert child.is_inheritance_root
    assert child.depth == 0


def test_local_parent_is_followed_and_becomes_inheritance_root(tmp_path: Path):
    root = tmp_path / "proj"
    write_pom(root / "build-parent", """<project>
  <groupId>org.example</groupId>
  <artifactId>build-parent</artifactId>
  <version>3</version>
</project>
""")
    write_pom(root, """<project>
  <parent>
    <groupId>org.example</groupId>
    <artifactId>build-parent</artifactId>
    <version>3</version>
    <relativePath>build-parent/pom.xml</relativePath>
  </parent>
  <artifactId>app</artifactId>
</project>
""")

    scan = PomIO().parse_project(root / "pom.xml")
    app, parent = scan.descriptors

    assert app.is_execution_root
    assert not app.is_inheritance_root
    assert parent.is_inheritance_root
    assert app.project_parent is parent
    assert app.depth == 1


def test_dangling_parent_makes_inheritance_root(tmp_path: Path):
    root = tmp_path / "proj"
    write_pom(root, ROOT_POM.replace("<module>child</module>", "<module>lib</module>"))
    write_pom(root / "lib", """<project>
  <parent>
    <groupId>org.thirdparty</groupId>
    <artifactId>bom</artifactId>
    <version>7</version>
  </parent>
  <artifactId>lib</artifactId>
</project>
""")

    lib = PomIO().parse_project(root / "pom.xml").descriptors[1]

    assert lib.is_inheritance_root
    assert lib.project_parent is None
    assert lib.depth == 0


def test_missing_module_is_skipped_with_warning(project: Path):
    (project / "pom.xml").write_text(
        ROOT_POM.replace("<module>child</module>", "<module>child</module>\n        <module>gone</module>"),
        encoding="utf-8",
    )

    scan = PomIO().parse_project(project / "pom.xml")

    assert len(scan.descriptors) == 3
    assert len(scan.warnings) == 1
    assert "gone" in scan.warnings[0]


def test_module_outside_tree_is_skipped(tmp_path: Path):
    root = tmp_path / "proj"
    write_pom(tmp_path / "elsewhere", CHILD_POM)
    write_pom(root, ROOT_POM.replace("<module>child</module>", "<module>../elsewhere</module>"))

    scan = PomIO().parse_project(root / "pom.xml")

    assert len(scan.descriptors) == 1
    assert "outside" in scan.warnings[0]


def test_corrupt_descriptor_raises_scan_error(project: Path):
    broken = project / "child" / "pom.xml"
    broken.write_text("<project><artifactId>child</artifactId>", encoding="utf-8")

    with pytest.raises(ScanError) as ei:
        PomIO().parse_project(project / "pom.xml")

    assert ei.value.file == broken.resolve()
    assert ei.value.kind == "scan"


def test_missing_entry_is_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        PomIO().parse_project(tmp_path / "nope" / "pom.xml")


def test_templates_can_be_excluded(project: Path):
    write_pom(project / "tpl", """<project>
  <groupId>org.example</groupId>
  <artifactId>${template.name}</artifactId>
  <version>1.0</version>
</project>
""")
    (project / "pom.xml").write_text(
        ROOT_POM.replace("<module>child</module>", "<module>child</module>\n        <module>tpl</module>"),
        encoding="utf-8",
    )

    assert len(PomIO(parse_templates=True).parse_project(project).descriptors) == 4
    assert len(PomIO(parse_templates=False).parse_project(project).descriptors) == 3
