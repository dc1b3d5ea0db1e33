"""Typed configuration loading and access.

The optional ``retention.toml`` file looks like:

    [retention]
    strategy = "most-recent"
    keep = 3
    max_age_days = 30
    workers = 1

    [data]
    dir = "data"

Missing keys fall back to the defaults below. Values of the wrong type are
errors. Values are not range-checked here; the retention strategies reject
bad settings when they are built.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict

__all__ = [
    "Config",
    "ConfigError",
    "DataConfig",
    "RetentionConfig",
    "load_config",
    "CONFIG_FILE_NAME",
    "DEFAULT_STRATEGY",
    "DEFAULT_KEEP",
    "DEFAULT_MAX_AGE_DAYS",
    "DEFAULT_WORKERS",
    "DEFAULT_DATA_DIR",
]

CONFIG_FILE_NAME = "retention.toml"

DEFAULT_STRATEGY = "most-recent"
DEFAULT_KEEP = 1
DEFAULT_MAX_AGE_DAYS = 30
DEFAULT_WORKERS = 1
DEFAULT_DATA_DIR = "data"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RetentionConfig:
    """Which retention policy to run and how."""

    strategy: str = DEFAULT_STRATEGY
    keep: int = DEFAULT_KEEP
    max_age_days: int = DEFAULT_MAX_AGE_DAYS
    workers: int = DEFAULT_WORKERS


@dataclass(frozen=True, slots=True)
class DataConfig:
    """Where the input data files live, relative to the working directory."""

    dir: str = DEFAULT_DATA_DIR


def _table(data: Mapping[str, object], key: str) -> StrDict:
    value = data.get(key)
    if value is None:
        return {}
    table = as_str_dict(value)
    if table is None:
        raise ValueError(f"[{key}] must be a table, got {value!r}")
    return table


def _int(table: StrDict, section: str, key: str, default: int) -> int:
    value = table.get(key)
    if value is None:
        return default
    # bool subclasses int; `keep = true` is a typo, not a count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{section}.{key} must be an integer, got {value!r}")
    return value


def _str(table: StrDict, section: str, key: str, default: str) -> str:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{section}.{key} must be a non-empty string, got {value!r}")
    return value.strip()


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    retention: RetentionConfig = field(default_factory=RetentionConfig)
    data: DataConfig = field(default_factory=DataConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: a section or key holds a value of the wrong type.
        """
        retention = _table(data, "retention")
        data_table = _table(data, "data")

        return cls(
            retention=RetentionConfig(
                strategy=_str(retention, "retention", "strategy", DEFAULT_STRATEGY),
                keep=_int(retention, "retention", "keep", DEFAULT_KEEP),
                max_age_days=_int(retention, "retention", "max_age_days", DEFAULT_MAX_AGE_DAYS),
                workers=_int(retention, "retention", "workers", DEFAULT_WORKERS),
            ),
            data=DataConfig(dir=_str(data_table, "data", "dir", DEFAULT_DATA_DIR)),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

