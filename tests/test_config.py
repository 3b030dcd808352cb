"""
Config System (config.py)

Tests PluginConfig validation, modes and ConfigLoader precedence.
"""

import json

import pytest

from persistql import PersistedQueryPlugin
from persistql.config import ConfigLoader, Consumer, PluginConfig, Standalone
from persistql.faults import ConfigInvalidFault, ConfigMissingFault, FilesystemFault


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in PluginConfig.FIELDS:
        monkeypatch.delenv("PERSISTQL_" + key.upper(), raising=False)


# ============================================================================
# PluginConfig
# ============================================================================

class TestPluginConfig:

    def test_defaults(self):
        config = PluginConfig(module_name="queries.json")
        assert config.filename is None
        assert config.add_typename is False
        assert config.hash_algorithm == "sha1"
        assert isinstance(config.mode, Standalone)
        assert not config.is_consumer

    def test_missing_module_name(self):
        with pytest.raises(ConfigMissingFault):
            PluginConfig().validate()

    def test_blank_module_name(self):
        with pytest.raises(ConfigMissingFault):
            PluginConfig(module_name="   ").validate()

    def test_invalid_mode(self):
        with pytest.raises(ConfigInvalidFault):
            PluginConfig(module_name="q.json", mode="consumer").validate()

    def test_consumer_needs_plugin_producer(self):
        with pytest.raises(ConfigInvalidFault):
            PluginConfig(module_name="q.json", mode=Consumer(object())).validate()

    def test_consumer_mode(self):
        producer = PersistedQueryPlugin(module_name="q.json")
        config = PluginConfig(module_name="q.json", mode=Consumer(producer)).validate()
        assert config.is_consumer
        assert config.to_dict()["mode"] == "consumer"

    def test_invalid_hash_algorithm(self):
        with pytest.raises(ConfigInvalidFault):
            PluginConfig(module_name="q.json", hash_algorithm="nope").validate()

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigInvalidFault) as exc_info:
            PluginConfig.from_dict({"module_name": "q.json", "moduleName": "x"})
        assert exc_info.value.metadata["key"] == "moduleName"

    def test_to_dict(self):
        config = PluginConfig(module_name="q.json", filename="out.json")
        assert config.to_dict() == {
            "module_name": "q.json",
            "filename": "out.json",
            "add_typename": False,
            "hash_algorithm": "sha1",
            "mode": "standalone",
        }


# ============================================================================
# ConfigLoader
# ============================================================================

class TestConfigLoader:

    def test_overrides_only(self):
        config = ConfigLoader.load(overrides={"module_name": "q.json"})
        assert config.module_name == "q.json"

    def test_nothing_configured(self):
        with pytest.raises(ConfigMissingFault):
            ConfigLoader.load()

    def test_file(self, tmp_path):
        path = tmp_path / "persistql.json"
        path.write_text(json.dumps({"module_name": "q.json", "filename": "out.json"}))
        config = ConfigLoader.load(str(path))
        assert config.module_name == "q.json"
        assert config.filename == "out.json"

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "persistql.json"
        path.write_text(json.dumps({"module_name": "file.json", "filename": "file-out.json"}))
        monkeypatch.setenv("PERSISTQL_FILENAME", "env-out.json")

        config = ConfigLoader.load(
            str(path),
            defaults={"module_name": "default.json", "hash_algorithm": "sha256"},
            overrides={"filename": None},
        )

        assert config.module_name == "file.json"
        assert config.filename == "env-out.json"
        assert config.hash_algorithm == "sha256"

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("PERSISTQL_MODULE_NAME", "env.json")
        config = ConfigLoader.load(overrides={"module_name": "override.json"})
        assert config.module_name == "override.json"

    @pytest.mark.parametrize("value,expected", [
        ("1", True), ("true", True), ("YES", True), ("on", True),
        ("0", False), ("false", False), ("no", False), ("", False),
    ])
    def test_env_boolean(self, monkeypatch, value, expected):
        monkeypatch.setenv("PERSISTQL_MODULE_NAME", "q.json")
        monkeypatch.setenv("PERSISTQL_ADD_TYPENAME", value)
        assert ConfigLoader.load().add_typename is expected

    def test_env_bad_boolean(self, monkeypatch):
        monkeypatch.setenv("PERSISTQL_ADD_TYPENAME", "maybe")
        with pytest.raises(ConfigInvalidFault):
            ConfigLoader.load(overrides={"module_name": "q.json"})

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("PQ_MODULE_NAME", "q.json")
        assert ConfigLoader.load(env_prefix="PQ_").module_name == "q.json"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FilesystemFault):
            ConfigLoader.load(str(tmp_path / "missing.json"))

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "persistql.json"
        path.write_text("{not json")
        with pytest.raises(ConfigInvalidFault):
            ConfigLoader.load(str(path))

    def test_non_object_file(self, tmp_path):
        path = tmp_path / "persistql.json"
        path.write_text("[]")
        with pytest.raises(ConfigInvalidFault):
            ConfigLoader.load(str(path))

    def test_mode_passed_through(self):
        producer = PersistedQueryPlugin(module_name="q.json")
        config = ConfigLoader.load(overrides={"module_name": "q.json"}, mode=Consumer(producer))
        assert config.mode.producer is producer
