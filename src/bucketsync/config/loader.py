"""
Configuration file loading.

Loads a YAML config file plus an optional per-environment overlay
(``bucketsync.yaml`` + ``bucketsync.prod.yaml``).
"""

from pathlib import Path
from typing import Any

import yaml

from bucketsync.config.resolver import resolve_config
from bucketsync.exceptions import ConfigurationError

DEFAULT_CONFIG_NAME = "bucketsync.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        if hasattr(e, "problem_mark"):
            mark = e.problem_mark
            raise ConfigurationError(
                f"Error parsing {path.name} at line {mark.line + 1}, column {mark.column + 1}:\n"
                f"  {e}\n"
                f"  Suggestion: Check YAML syntax, ensure proper indentation and quotes",
                details={"path": str(path)},
            ) from e
        raise ConfigurationError(f"Error parsing {path.name}: {e}", details={"path": str(path)}) from e
    except PermissionError as e:
        raise ConfigurationError(f"Permission denied reading {path}: {e}", details={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}", details={"path": str(path)}
        )
    return data


def load_config(config_path: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """
    Load bucketsync configuration.

    Args:
        config_path: Config file (default: ./bucketsync.yaml)
        env: Environment name; ``<stem>.<env>.yaml`` next to the file overrides it

    Returns:
        Merged and resolved configuration dictionary

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_NAME

    if not config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}\n"
            f"  Suggestion: Create {DEFAULT_CONFIG_NAME} or pass options on the command line",
            details={"path": str(config_path)},
        )

    config_data = _read_yaml(config_path)

    if env:
        env_config_path = config_path.with_name(f"{config_path.stem}.{env}{config_path.suffix}")
        if env_config_path.is_file():
            _merge_dict(config_data, _read_yaml(env_config_path))

    return resolve_config(config_data, env or "dev")


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
