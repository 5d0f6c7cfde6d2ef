"""Tests for TOML config file loading and settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from serilogsyntax.config import (
    DEFAULT_LOG_LEVEL,
    Settings,
    load_config,
    resolve_settings,
)
from serilogsyntax.errors import ConfigError
from serilogsyntax.multiline import StringWindows


class TestLoadConfig:
    def test_missing_config_returns_empty(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_explicit_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text("[windows]\nraw_lookback = 20\n")
        result = load_config(cfg, tmp_path)
        assert result["windows"] == {"raw_lookback": 20}

    def test_auto_discover_serilogsyntax_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "serilogsyntax.toml"
        cfg.write_text('[logging]\nlevel = "DEBUG"\n')
        result = load_config(None, tmp_path)
        assert result["logging"] == {"level": "DEBUG"}

    def test_invalid_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "serilogsyntax.toml"
        cfg.write_text("[windows\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(None, tmp_path)
        assert exc_info.value.path == cfg


class TestResolveSettings:
    def test_defaults(self) -> None:
        settings = resolve_settings({})
        assert settings == Settings()
        assert settings.windows == StringWindows()
        assert settings.log_level == DEFAULT_LOG_LEVEL

    def test_window_overrides(self) -> None:
        settings = resolve_settings({"windows": {"raw_lookback": 10, "continuation_lookback": 2}})
        assert settings.windows.raw_lookback == 10
        assert settings.windows.continuation_lookback == 2
        assert settings.windows.verbatim_lookback == StringWindows().verbatim_lookback

    def test_cache_capacities(self) -> None:
        settings = resolve_settings({"cache": {"call_capacity": 7, "context_capacity": 3}})
        assert settings.call_cache_capacity == 7
        assert settings.context_cache_capacity == 3

    def test_log_level_normalized(self) -> None:
        assert resolve_settings({"logging": {"level": "debug"}}).log_level == "DEBUG"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            resolve_settings({"logging": {"level": "LOUD"}})
        assert exc_info.value.key == "logging.level"

    @pytest.mark.parametrize("value", [0, -5, "10", True, 1.5])
    def test_invalid_window_values(self, value: object) -> None:
        with pytest.raises(ConfigError) as exc_info:
            resolve_settings({"windows": {"raw_lookforward": value}})
        assert exc_info.value.key == "windows.raw_lookforward"

    def test_section_must_be_table(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            resolve_settings({"cache": 5})
        assert exc_info.value.key == "cache"

    def test_error_message_names_file(self, tmp_path: Path) -> None:
        path = tmp_path / "serilogsyntax.toml"
        with pytest.raises(ConfigError) as exc_info:
            resolve_settings({"cache": {"call_capacity": 0}}, path)
        assert str(path) in exc_info.value.format()
        assert "cache.call_capacity" in exc_info.value.format()
