"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from .models import ForkwatchConfig

# Global cache to avoid reloading config multiple times per process
_config_cache: ForkwatchConfig | None = None

PROJECT_CONFIG_NAME = ".forkwatch.json"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")

# Variables read from .env files; the rest belong to the frontend app
ENV_PREFIX = "FORKWATCH_"
ENV_NAMES = frozenset({"PORT", "EDITOR"})


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/forkwatch/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "forkwatch" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Project directory (defaults to current directory)

    Returns:
        Path to .forkwatch.json in the project directory
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"server": {"host": "a", "port": 1}}, {"server": {"port": 2}})
        {'server': {'host': 'a', 'port': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config problems should not stop the watcher
        print(f"Warning: Failed to parse config at {path}: {e}")
        return None


def _parse_bool(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        FORKWATCH_HOST - overrides server.host
        FORKWATCH_PORT - overrides server.port (PORT is also accepted)
        FORKWATCH_LAZY - overrides watch.lazy
        FORKWATCH_EXTENSIONS - overrides watch.extensions ("tsx,ts")
        EDITOR - sets editor.tool when no config file sets it

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if host := os.environ.get("FORKWATCH_HOST"):
        result.setdefault("server", {})
        result["server"]["host"] = host

    port_str = os.environ.get("FORKWATCH_PORT") or os.environ.get("PORT")
    if port_str:
        try:
            port = int(port_str)
            if not 1 <= port <= 65535:
                print(f"Warning: Port must be between 1 and 65535, got {port}, ignoring")
            else:
                result.setdefault("server", {})
                result["server"]["port"] = port
        except ValueError:
            print(f"Warning: Invalid FORKWATCH_PORT value '{port_str}', ignoring")

    if (lazy_str := os.environ.get("FORKWATCH_LAZY")) is not None:
        lazy = _parse_bool(lazy_str)
        if lazy is None:
            print(f"Warning: Invalid FORKWATCH_LAZY value '{lazy_str}', ignoring")
        else:
            result.setdefault("watch", {})
            result["watch"]["lazy"] = lazy

    if extensions := os.environ.get("FORKWATCH_EXTENSIONS"):
        result.setdefault("watch", {})
        result["watch"]["extensions"] = extensions

    # EDITOR is a default, not an override of an explicitly configured tool
    if editor := os.environ.get("EDITOR"):
        section = result.get("editor")
        if isinstance(section, str):
            section = {"tool": section}
        section = dict(section or {})
        if not section.get("tool"):
            section["tool"] = editor
        result["editor"] = section

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "server": {"host": "127.0.0.1", "port": 3030},
        "watch": {"lazy": False},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> ForkwatchConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (FORKWATCH_*, PORT, EDITOR)
        2. Project config (.forkwatch.json)
        3. User config (~/.config/forkwatch/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory to load .forkwatch.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated ForkwatchConfig instance

    Raises:
        pydantic.ValidationError: If the merged config fails validation

    Example:
        >>> config = load_config()
        >>> config.server.port
        3030
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    user_config_path = get_user_config_path()
    if user_config := load_json_file(user_config_path):
        merged = deep_merge(merged, user_config)

    project_config_path = get_project_config_path(project_dir)
    if project_config := load_json_file(project_config_path):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = ForkwatchConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None


def _read_dotenv(path: Path) -> dict[str, str]:
    """Forkwatch variables defined in one .env file."""
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if value is not None and (key.startswith(ENV_PREFIX) or key in ENV_NAMES)
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """
    Export forkwatch variables from .env files into os.environ.

    Precedence (highest to lowest):
        1. Variables already in the environment
        2. Project .env / .env.local
        3. User ~/.config/forkwatch/.env (or XDG equivalent)

    A project .env usually belongs to the watched frontend app, so only
    FORKWATCH_*, PORT and EDITOR are taken from it.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Explicit user .env paths
        project_env_paths: Explicit project .env paths

    Returns:
        Names of the variables set from .env files
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "forkwatch" / ".env"]
    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    layered: dict[str, str] = {}
    for path in [*user_env_paths, *project_env_paths]:
        layered.update(_read_dotenv(Path(path)))

    loaded = {key for key in layered if key not in os.environ}
    for key in loaded:
        os.environ[key] = layered[key]
    return loaded
