"""Tests for configuration loading and saving."""

from __future__ import annotations

from pathlib import Path

import pytest

from asset_recovery.config import (
    DEFAULT_DUPLICABLE_FIELDS,
    AppConfig,
    load_config,
    save_config,
)
from asset_recovery.exceptions import ConfigError

ENV_VARS = (
    "ASSET_RECOVERY_HEADLESS",
    "ASSET_RECOVERY_ARRAY_KEYS",
    "ASSET_RECOVERY_PRIMARY_KEY",
    "ASSET_RECOVERY_FALLBACK",
    "ASSET_RECOVERY_DUPLICABLE_FIELDS",
    "ASSET_RECOVERY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg == AppConfig()
        assert cfg.recovery.document.array_keys == ["assets"]
        assert cfg.recovery.document.primary_key == "asset_name"
        assert cfg.recovery.duplicable_fields == DEFAULT_DUPLICABLE_FIELDS
        assert cfg.recovery.fallback.enabled is True

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_partial_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "recovery:\n"
            "  document:\n"
            "    array_keys: [assets, items]\n"
            "  fallback:\n"
            "    enabled: false\n"
            "log_level: DEBUG\n"
        )
        cfg = load_config(path)
        assert cfg.recovery.document.array_keys == ["assets", "items"]
        assert cfg.recovery.document.primary_key == "asset_name"
        assert cfg.recovery.fallback.enabled is False
        assert cfg.log_level == "DEBUG"

    def test_env_interpolation(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MY_PRIMARY_KEY", "item_name")
        path = tmp_path / "config.yaml"
        path.write_text("recovery:\n  document:\n    primary_key: ${MY_PRIMARY_KEY}\n")
        assert load_config(path).recovery.document.primary_key == "item_name"

    def test_headless_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ASSET_RECOVERY_HEADLESS", "1")
        monkeypatch.setenv("ASSET_RECOVERY_ARRAY_KEYS", "items, assets")
        monkeypatch.setenv("ASSET_RECOVERY_FALLBACK", "false")
        monkeypatch.setenv("ASSET_RECOVERY_DUPLICABLE_FIELDS", "tags,quantity")
        monkeypatch.setenv("ASSET_RECOVERY_LOG_LEVEL", "INFO")
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg.recovery.document.array_keys == ["items", "assets"]
        assert cfg.recovery.fallback.enabled is False
        assert cfg.recovery.duplicable_fields == ["tags", "quantity"]
        assert cfg.log_level == "INFO"

    def test_primary_key_env_enables_headless(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ASSET_RECOVERY_PRIMARY_KEY", "item")
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg.recovery.document.primary_key == "item"

    def test_file_wins_over_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ASSET_RECOVERY_PRIMARY_KEY", "item")
        path = tmp_path / "config.yaml"
        path.write_text("log_level: ERROR\n")
        cfg = load_config(path)
        assert cfg.recovery.document.primary_key == "asset_name"

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("recovery: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_raises(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_wrong_type_raises(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("recovery:\n  log_preview_chars: lots\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestSaveConfig:
    def test_round_trip(self, tmp_path: Path):
        cfg = AppConfig(log_level="INFO")
        cfg.recovery.document.primary_key = "item"
        cfg.recovery.duplicable_fields = ["tags"]
        path = save_config(cfg, tmp_path / "nested" / "config.yaml")
        assert path.exists()
        assert load_config(path) == cfg
