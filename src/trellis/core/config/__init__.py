"""
Configuration models and loading.

Pydantic models for trellis configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    load_config,
    project_config_path,
    user_config_dir,
    user_config_path,
)
from .models import CacheConfig, LoggingConfig, ServerConfig, StoreConfig, TrellisConfig

__all__ = [
    # Models
    "CacheConfig",
    "LoggingConfig",
    "ServerConfig",
    "StoreConfig",
    "TrellisConfig",
    # Loader functions
    "clear_cache",
    "load_config",
    "project_config_path",
    "user_config_dir",
    "user_config_path",
]
