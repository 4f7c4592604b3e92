from pathlib import Path

import pytest

from pomalign.core.errors import TransformError
from pomalign.core.transformers import DEFAULT_PLUGIN_DIR, TransformerRegistry


class Recorder:
    def __init__(self, name, priority, log, enabled=True):
        self.name = name
        self.priority = priority
        self.version = "1"
        self.config_keys = {}
        self._log = log
        self._enabled = enabled

    def init(self, session):
        self._log.append(("init", self.name))

    def is_enabled(self):
        return self._enabled

    def apply_changes(self, descriptors):
        self._log.append(("apply", self.name))
        return set()


def test_default_plugins_are_discovered_in_priority_order():
    reg = TransformerRegistry()

    assert reg.names() == ["property-override", "dependency-override", "project-version"]
    assert all(info.module_path for info in reg.describe())


def test_fingerprint_is_stable_across_loads():
    assert TransformerRegistry().fingerprint == TransformerRegistry(plugins_dir=DEFAULT_PLUGIN_DIR).fingerprint
    assert TransformerRegistry().fingerprint != TransformerRegistry(load_plugins=False).fingerprint


def test_each_registry_gets_its_own_plugin_instances():
    a = TransformerRegistry().get("project-version")
    b = TransformerRegistry().get("project-version")

    assert a is not b


def test_init_runs_in_reverse_and_apply_in_forward_order():
    log = []
    reg = TransformerRegistry(
        [Recorder("c", 30, log), Recorder("a", 10, log), Recorder("b", 20, log, enabled=False)],
        load_plugins=False,
    )

    enabled = reg.init_all(session=None)
    changed, ran = reg.apply([])

    assert [t.name for t in enabled] == ["a", "c"]
    assert log == [
        ("init", "c"), ("init", "b"), ("init", "a"),
        ("apply", "a"), ("apply", "c"),
    ]
    assert ran == ["a", "c"]
    assert changed == set()


def test_duplicate_names_are_rejected():
    reg = TransformerRegistry([Recorder("x", 1, [])], load_plugins=False)

    with pytest.raises(ValueError):
        reg.register(Recorder("x", 2, []))


def test_init_failure_is_a_transform_error():
    class Broken(Recorder):
        def init(self, session):
            raise KeyError("missing")

    reg = TransformerRegistry([Broken("broken", 1, [])], load_plugins=False)

    with pytest.raises(TransformError):
        reg.init_all(session=None)


def test_plugins_are_loaded_from_directory(tmp_path: Path):
    (tmp_path / "stamp.py").write_text(
        "class Stamp:\n"
        "    name = 'stamp'\n"
        "    priority = 5\n"
        "    version = '0.1'\n"
        "    config_keys = {'stamp': False}\n"
        "    def init(self, session):\n"
        "        pass\n"
        "    def is_enabled(self):\n"
        "        return True\n"
        "    def apply_changes(self, descriptors):\n"
        "        return set()\n"
        "\n"
        "TRANSFORMER = Stamp()\n",
        encoding="utf-8",
    )
    (tmp_path / "_helper.py").write_text("raise RuntimeError('not a plugin')\n", encoding="utf-8")
    (tmp_path / "empty.py").write_text("X = 1\n", encoding="utf-8")

    reg = TransformerRegistry(plugins_dir=tmp_path)

    assert reg.names() == ["stamp"]
    assert reg.config_keys() == {"stamp": False}
    info = reg.describe()[0]
    assert info.module_path == str(tmp_path / "stamp.py")
    assert info.priority == 5


def test_missing_plugin_dir_yields_empty_registry(tmp_path: Path):
    reg = TransformerRegistry(plugins_dir=tmp_path / "nope")

    assert reg.names() == []
