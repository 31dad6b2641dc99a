"""uistable configuration — layered load, key checks, dotted-key edits.

Layers, later wins:
    1. Model defaults
    2. YAML file (uistable.config.yaml in cwd, a parent, or .uistable/)
    3. UISTABLE_* environment variables (``__`` separates nesting)
    4. Explicit overrides (CLI flags)

Every key in a layer must name a field of Config. A misspelt key is
reported together with the list of valid keys.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import SettingsError

from uistable.core.exceptions import ConfigError
from uistable.core.models import Config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "uistable.config.yaml"
CONFIG_DIRNAME = ".uistable"
ENV_PREFIX = "UISTABLE_"
ENV_NESTED_DELIMITER = "__"


def config_keys(model: type[BaseModel] = Config, prefix: str = "") -> list[str]:
    """Dotted names of every settable field, e.g. ``idle.threshold``."""
    keys: list[str] = []
    for name, field in model.model_fields.items():
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            keys.extend(config_keys(annotation, f"{prefix}{name}."))
        else:
            keys.append(f"{prefix}{name}")
    return keys


def env_var_name(key: str) -> str:
    """``idle.threshold`` -> ``UISTABLE_IDLE__THRESHOLD``."""
    return ENV_PREFIX + key.upper().replace(".", ENV_NESTED_DELIMITER)


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Build Config from the YAML file, environment and overrides.

    Args:
        config_path: Explicit YAML path. If None, find_config_file() is used.
            A path that does not exist contributes nothing.
        overrides: Nested dict merged last (CLI flags).

    Raises:
        ConfigError: Unreadable YAML, unknown keys, or invalid values.
    """
    if config_path is None:
        config_path = find_config_file()

    layers: list[tuple[str, dict[str, Any]]] = []
    if config_path is not None and config_path.exists():
        layers.append((str(config_path), read_config_file(config_path)))
    layers.append(("environment", env_layer()))
    if overrides:
        layers.append(("overrides", overrides))

    merged: dict[str, Any] = {}
    for source, data in layers:
        _check_keys(data, source)
        merged = _deep_merge(merged, data)
    return _build(merged)


def set_config_value(path: Path, key: str, value: str) -> Any:
    """Validate one dotted key and write it into the YAML file at path.

    Other entries already in the file are kept as they are; environment
    values are never copied into the file.

    Returns:
        The stored value after validation and coercion (``"85"`` -> 85).
    """
    if key not in config_keys():
        raise ConfigError(_unknown_key_message(key, "config set"))

    data = read_config_file(path) if path.exists() else {}
    _check_keys(data, str(path))
    updated = _deep_merge(data, _nest(key, value))
    config = _build(updated)

    stored: Any = config.model_dump(mode="json")
    for part in key.split("."):
        stored = stored[part]

    _write_yaml(_deep_merge(data, _nest(key, stored)), path)
    logger.info("Config %s set to %r in %s", key, stored, path)
    return stored


def save_config(config: Config, path: Path) -> None:
    """Write the full Config to a YAML file."""
    _write_yaml(config.model_dump(mode="json"), path)


def find_config_file(start: Path | None = None) -> Path | None:
    """Nearest config file from start (default cwd) up to the filesystem root."""
    start = start or Path.cwd()
    for directory in [start, *start.parents]:
        for candidate in (
            directory / DEFAULT_CONFIG_FILENAME,
            directory / CONFIG_DIRNAME / DEFAULT_CONFIG_FILENAME,
        ):
            if candidate.is_file():
                return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML config file. An empty file is an empty mapping."""
    try:
        with open(path, encoding="utf-8") as f:  # noqa: PTH123
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        msg = f"Failed to parse YAML: {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Failed to read config: {path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file must be a YAML mapping, got {type(data).__name__}: {path}"
        raise ConfigError(msg)
    return data


def env_layer() -> dict[str, Any]:
    """Nested dict of the UISTABLE_* variables that name a config key.

    Other UISTABLE_* variables are skipped with a warning.
    """
    known = {env_var_name(key): key for key in config_keys()}
    result: dict[str, Any] = {}
    for name, value in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        key = known.get(name.upper())
        if key is None:
            logger.warning("Ignoring unknown config variable %s", name)
            continue
        result = _deep_merge(result, _nest(key, value))
    return result


def _build(data: dict[str, Any]) -> Config:
    try:
        return Config(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: "
            f"{err['msg'].removeprefix('Value error, ')}"
            for err in e.errors()
        )
        msg = f"Config validation failed: {problems}"
        raise ConfigError(msg) from e
    except SettingsError as e:
        msg = f"Config validation failed: {e}"
        raise ConfigError(msg) from e


def _check_keys(data: dict[str, Any], source: str) -> None:
    known = set(config_keys())
    sections = {key.rpartition(".")[0] for key in known} - {""}
    for key in _flatten(data):
        # A section given a non-mapping value is left to model validation.
        if key not in known and key not in sections:
            raise ConfigError(_unknown_key_message(key, source))


def _unknown_key_message(key: str, source: str) -> str:
    return f"Unknown config key '{key}' ({source}). Valid keys: {', '.join(config_keys())}"


def _flatten(data: dict[str, Any], prefix: str = "") -> list[str]:
    keys: list[str] = []
    for name, value in data.items():
        dotted = f"{prefix}{name}"
        if isinstance(value, dict):
            keys.extend(_flatten(value, f"{dotted}."))
        else:
            keys.append(dotted)
    return keys


def _nest(key: str, value: Any) -> dict[str, Any]:
    """``("idle.threshold", 85)`` -> ``{"idle": {"threshold": 85}}``."""
    result: Any = value
    for part in reversed(key.split(".")):
        result = {part: result}
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base. Override wins."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _write_yaml(data: dict[str, Any], path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:  # noqa: PTH123
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    except OSError as e:
        msg = f"Failed to write config: {path}: {e}"
        raise ConfigError(msg) from e
