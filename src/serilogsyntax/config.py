"""Settings: window sizes, cache capacities, and log level, from serilogsyntax.toml."""

from __future__ import annotations

import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from serilogsyntax import logs
from serilogsyntax.calls import DEFAULT_CACHE_CAPACITY
from serilogsyntax.errors import ConfigError
from serilogsyntax.multiline import StringWindows

CONFIG_FILENAME = "serilogsyntax.toml"

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"

DEFAULT_LOG_LEVEL = "WARNING"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration. Defaults apply when no config file is present."""

    windows: StringWindows = field(default_factory=StringWindows)
    call_cache_capacity: int = DEFAULT_CACHE_CAPACITY
    context_cache_capacity: int = DEFAULT_CACHE_CAPACITY
    log_level: str = DEFAULT_LOG_LEVEL


def load_config(config_path: Path | None, search_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict when none exists."""
    path = config_path if config_path is not None else search_dir / CONFIG_FILENAME

    if not path.is_file():
        logger.debug(logs.CONFIG_NOT_FOUND.format(path=path))
        return {}

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc), path) from exc
    logger.debug(logs.CONFIG_LOADED.format(path=path))
    return config


def _table(config: dict[str, Any], name: str, path: Path | None) -> dict[str, Any]:
    table = config.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError("expected a table", path, name)
    return table


def _positive_int(table: dict[str, Any], key: str, default: int, section: str, path: Path | None) -> int:
    value = table.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"expected a positive integer, got {value!r}", path, f"{section}.{key}")
    return value


def resolve_settings(config: dict[str, Any], path: Path | None = None) -> Settings:
    """Validate a loaded config dict and build Settings from it."""
    defaults = StringWindows()
    windows = _table(config, "windows", path)
    cache = _table(config, "cache", path)
    log_table = _table(config, "logging", path)

    level = log_table.get("level", DEFAULT_LOG_LEVEL)
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ConfigError(f"unknown log level {level!r}", path, "logging.level")

    return Settings(
        windows=StringWindows(
            verbatim_lookback=_positive_int(
                windows, "verbatim_lookback", defaults.verbatim_lookback, "windows", path
            ),
            raw_lookback=_positive_int(windows, "raw_lookback", defaults.raw_lookback, "windows", path),
            raw_lookforward=_positive_int(
                windows, "raw_lookforward", defaults.raw_lookforward, "windows", path
            ),
            continuation_lookback=_positive_int(
                windows, "continuation_lookback", defaults.continuation_lookback, "windows", path
            ),
        ),
        call_cache_capacity=_positive_int(
            cache, "call_capacity", DEFAULT_CACHE_CAPACITY, "cache", path
        ),
        context_cache_capacity=_positive_int(
            cache, "context_capacity", DEFAULT_CACHE_CAPACITY, "cache", path
        ),
        log_level=level.upper(),
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Enable serilogsyntax logging with a single stderr sink at *level*."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    logger.enable("serilogsyntax")
