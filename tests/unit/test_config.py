"""
Unit tests for configuration loading and validation.
"""

from pathlib import Path

import pytest

from trajviz.utils.config import (
    DEFAULT_CONFIG,
    LOG_LEVEL_ENV,
    AppConfig,
    ConfigError,
    load_app_config,
    load_config,
    merge_configs,
    save_config,
)

DEFAULT_YAML = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"


class TestConfigFiles:

    def test_save_and_load(self, tmp_path):
        config = {"physics": {"time_scale": 4.0}, "output": {"directory": "plots"}}
        path = tmp_path / "nested" / "config.yaml"
        save_config(config, path)

        assert load_config(path) == config

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("physics: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_shipped_defaults_match(self):
        assert load_config(DEFAULT_YAML) == DEFAULT_CONFIG


class TestMergeConfigs:

    def test_nested_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        merged = merge_configs(base, {"a": {"y": 20}, "c": 4})

        assert merged == {"a": {"x": 1, "y": 20}, "b": 3, "c": 4}
        # Base is left untouched
        assert base["a"]["y"] == 2


class TestAppConfig:

    def test_defaults(self):
        config = AppConfig.from_dict({})

        assert config.physics.settings().steps_per_second() == 60
        assert config.physics.prediction_steps() == 18000
        assert config.output.dpi == 300
        assert config.logging.level == "INFO"
        assert config.to_dict() == DEFAULT_CONFIG

    def test_overrides(self):
        config = AppConfig.from_dict({"physics": {"delta_time": 0.5, "prediction_minutes": 2.0},
                                      "logging": {"level": "debug"}})

        assert config.physics.time_scale == 1.0
        assert config.physics.prediction_steps() == 240
        assert config.logging.level == "DEBUG"

    @pytest.mark.parametrize("overrides", [
        {"physics": {"delta_time": 0.0}},
        {"physics": {"prediction_minutes": -1.0}},
        {"view": {"fov_deg": 180.0}},
        {"view": {"width": 0}},
        {"output": {"dpi": 0}},
        {"logging": {"level": "LOUD"}},
        {"physics": {"substeps": 4}},
        {"physics": 5},
        {"plugins": {}},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ConfigError):
            AppConfig.from_dict(overrides)


class TestLoadAppConfig:

    def test_file_overrides(self, tmp_path, monkeypatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        path = tmp_path / "config.yaml"
        save_config({"physics": {"time_scale": 8.0}}, path)

        config = load_app_config(path)

        assert config.physics.time_scale == 8.0
        assert config.logging.level == "INFO"

    def test_environment_log_level(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
        assert load_app_config().logging.level == "WARNING"
