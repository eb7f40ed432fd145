"""Tests for configuration loading."""

import os
from pathlib import Path

import pytest

from allocation_engine.core import config as config_module
from allocation_engine.core.config import EngineConfig, get_config, reload_config
from allocation_engine.core.exceptions import ConfigurationError

ENV_KEYS = (
    "ALLOCATION_NEGLIGIBLE_PERCENTAGE",
    "ALLOCATION_COMPLETION_TOLERANCE",
    "ALLOCATION_ORDERS_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from the caller's environment and the global config."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "_config", None)


class TestEngineConfigFromEnv:
    """Tests for environment based configuration."""

    def test_defaults(self):
        cfg = EngineConfig.from_env()
        assert cfg.negligible_percentage == 0.01
        assert cfg.completion_tolerance == 0.01
        assert cfg.orders_file is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ALLOCATION_NEGLIGIBLE_PERCENTAGE", "0.5")
        monkeypatch.setenv("ALLOCATION_COMPLETION_TOLERANCE", "0.1")
        monkeypatch.setenv("ALLOCATION_ORDERS_FILE", "exports/orders.json")

        cfg = EngineConfig.from_env()
        assert cfg.negligible_percentage == 0.5
        assert cfg.completion_tolerance == 0.1
        assert cfg.orders_file == Path("exports/orders.json")

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("ALLOCATION_COMPLETION_TOLERANCE", "lots")
        with pytest.raises(ConfigurationError) as exc_info:
            EngineConfig.from_env()
        assert exc_info.value.config_key == "ALLOCATION_COMPLETION_TOLERANCE"

    def test_negative_number(self, monkeypatch):
        monkeypatch.setenv("ALLOCATION_NEGLIGIBLE_PERCENTAGE", "-1")
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env()

    def test_load_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ALLOCATION_COMPLETION_TOLERANCE=0.25\n", encoding="utf-8")

        try:
            cfg = EngineConfig.load(env_file)
        finally:
            os.environ.pop("ALLOCATION_COMPLETION_TOLERANCE", None)
        assert cfg.completion_tolerance == 0.25


class TestEngineConfigFromYaml:
    """Tests for YAML configuration files."""

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text(
            "negligible_percentage: 0.2\norders_file: data/orders.json\n",
            encoding="utf-8",
        )

        cfg = EngineConfig.from_yaml(path)
        assert cfg.negligible_percentage == 0.2
        assert cfg.completion_tolerance == 0.01
        assert cfg.orders_file == Path("data/orders.json")

    def test_missing_keys_fall_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ALLOCATION_COMPLETION_TOLERANCE", "0.3")
        path = tmp_path / "engine.yaml"
        path.write_text("negligible_percentage: 0.2\n", encoding="utf-8")

        assert EngineConfig.from_yaml(path).completion_tolerance == 0.3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("", encoding="utf-8")
        assert EngineConfig.from_yaml(path) == EngineConfig()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("tolerance: 0.2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="unknown keys"):
            EngineConfig.from_yaml(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            EngineConfig.from_yaml(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("negligible_percentage: [\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            EngineConfig.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            EngineConfig.from_yaml(tmp_path / "missing.yaml")


class TestGlobalConfig:
    """Tests for the lazily loaded global configuration."""

    def test_get_config_cached(self):
        assert get_config() is get_config()

    def test_reload_config(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("ALLOCATION_NEGLIGIBLE_PERCENTAGE", "0.4")

        reloaded = reload_config()
        assert reloaded is not first
        assert reloaded.negligible_percentage == 0.4
        assert get_config() is reloaded
