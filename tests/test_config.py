"""
Tests for generator configuration loading and validation.
"""

import json

import pytest

from jsbind.codegen.core.config import (
    ConfigError,
    ConfigManager,
    GeneratorConfig,
    load_config,
    validate_config,
)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config == GeneratorConfig()
        assert config.runtime_module == "jsbind.runtime"
        assert config.add_comments is True
        assert config.type_hints is True
        assert config.extern_types == {}

    def test_defaults_are_not_shared(self):
        first = load_config()
        first.extern_types["Dom.node"] = "dom"
        assert load_config().extern_types == {}

    def test_file_then_overrides(self, tmp_path):
        path = write_json(
            tmp_path / "jsbind.json", {"runtime_module": "app.js", "add_comments": False}
        )
        config = load_config({"add_comments": True}, config_file=path)
        assert config.runtime_module == "app.js"
        assert config.add_comments is True

    def test_unknown_keys_go_to_custom(self, tmp_path):
        path = write_json(tmp_path / "jsbind.json", {"indent": 2})
        config = load_config(config_file=path)
        assert config.custom == {"indent": 2}
        assert "Unknown configuration key: indent" in validate_config(config)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(config_file=tmp_path / "missing.json")

    def test_not_json_suffix(self, tmp_path):
        path = tmp_path / "jsbind.yaml"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(ConfigError, match="must be JSON"):
            load_config(config_file=path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "jsbind.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(config_file=path)

    def test_not_an_object(self, tmp_path):
        path = write_json(tmp_path / "jsbind.json", [1, 2])
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(config_file=path)

    def test_extern_types_must_be_a_mapping(self):
        with pytest.raises(ConfigError, match="extern_types"):
            load_config({"extern_types": ["Dom.node"]})


class TestValidateConfig:
    def test_valid(self):
        config = GeneratorConfig(extern_types={"Dom.element": "mylib.dom"})
        assert validate_config(config) == []

    @pytest.mark.parametrize(
        "config, message",
        [
            (GeneratorConfig(runtime_module="not a module"), "Invalid runtime_module"),
            (GeneratorConfig(runtime_module=""), "Invalid runtime_module"),
            (GeneratorConfig(extern_types={"Dom-node": "dom"}), "Invalid extern type name"),
            (GeneratorConfig(extern_types={"Dom.node": "my-dom"}), "Invalid module"),
            (GeneratorConfig(extern_types={"Dom.node": 3}), "Invalid module"),
        ],
    )
    def test_warnings(self, config, message):
        warnings = validate_config(config)
        assert len(warnings) == 1
        assert warnings[0].startswith(message)


class TestSaveConfig:
    def test_round_trip(self, tmp_path):
        manager = ConfigManager()
        config = GeneratorConfig(
            runtime_module="app.js",
            extern_types={"Dom.element": "mylib.dom"},
            custom={"indent": 2},
        )
        path = tmp_path / "saved.json"
        manager.save_config(config, path)

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["indent"] == 2
        assert "custom" not in saved
        assert manager.get_config(config_file=path) == config

    def test_unwritable_path(self, tmp_path):
        with pytest.raises(ConfigError, match="Failed to save"):
            ConfigManager().save_config(GeneratorConfig(), tmp_path / "missing" / "out.json")
