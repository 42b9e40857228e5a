"""
Configuration models and loading.

Pydantic models for forkwatch configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
    load_layered_env,
)
from .models import EditorConfig, ForkwatchConfig, ServerConfig, WatchConfig

__all__ = [
    # Models
    "EditorConfig",
    "ForkwatchConfig",
    "ServerConfig",
    "WatchConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
