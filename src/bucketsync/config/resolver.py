"""
Placeholder substitution for loaded config files.

Two placeholder forms are understood in string values:

- ``${NAME}`` / ``${NAME:-fallback}``: environment variable ``NAME``. An
  unset variable without a fallback is a configuration error, so a literal
  ``${AWS_ACCESS_KEY_ID}`` can never reach the object store as a credential.
  ``${NAME:-}`` resolves to an empty string, which leaves optional settings
  (such as credentials) to the default AWS chain.
- ``{env}``: the active environment name (``--env``, default ``dev``).
"""

import os
import re
from typing import Any

from bucketsync.exceptions import ConfigurationError

_ENV_VAR_RE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


def resolve_config(config_data: dict[str, Any], env: str = "dev") -> dict[str, Any]:
    """
    Substitute placeholders throughout a config mapping.

    Args:
        config_data: Configuration loaded from YAML
        env: Active environment name

    Returns:
        A new mapping with every string value resolved

    Raises:
        ConfigurationError: Naming every referenced variable that is unset and has no fallback
    """
    missing: list[str] = []
    resolved = _resolve(config_data, env, missing)
    if missing:
        names = ", ".join(sorted(set(missing)))
        raise ConfigurationError(
            f"Environment variables not set: {names}\n"
            f"  Suggestion: export them, or write ${{NAME:-}} for optional values",
            details={"variables": sorted(set(missing))},
        )
    return resolved


def _resolve(value: Any, env: str, missing: list[str]) -> Any:
    if isinstance(value, dict):
        return {key: _resolve(item, env, missing) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve(item, env, missing) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match) -> str:
        name, fallback = match.group("name"), match.group("fallback")
        if name in os.environ:
            return os.environ[name]
        if fallback is not None:
            return fallback
        missing.append(name)
        return ""

    return _ENV_VAR_RE.sub(substitute, value).replace("{env}", env)
