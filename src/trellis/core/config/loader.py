"""
Configuration loading.

Every layer is a mapping of section name (``cache``, ``store``, ``server``,
``logging``) to that section's settings. Layers are merged key by key
within a section, lowest precedence first:

    model defaults < user config.json < project .trellis.json < TRELLIS_* env

The result is validated once into a TrellisConfig and cached for the
process.
"""

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from trellis.core.errors import ConfigError

from .models import TrellisConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: TrellisConfig | None = None

Layer = dict[str, dict[str, Any]]

SECTIONS = tuple(TrellisConfig.model_fields)

PROJECT_CONFIG_NAME = ".trellis.json"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() not in ("false", "0", "no", "off")


def _parse_lower(raw: str) -> str:
    return raw.strip().lower()


# env var -> (section, key, parser); a parser raising ValueError skips the var
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "TRELLIS_CACHE_ENABLED": ("cache", "enabled", _parse_bool),
    "TRELLIS_CACHE_BACKEND": ("cache", "backend", _parse_lower),
    "TRELLIS_REDIS_URL": ("cache", "redis_url", str.strip),
    "TRELLIS_STORE_BACKEND": ("store", "backend", _parse_lower),
    "TRELLIS_DB_PATH": ("store", "sqlite_path", str.strip),
    "TRELLIS_HOST": ("server", "host", str.strip),
    "TRELLIS_PORT": ("server", "port", int),
    "TRELLIS_LOG_LEVEL": ("logging", "level", str.strip),
}


def user_config_dir() -> Path:
    """$XDG_CONFIG_HOME/trellis, falling back to ~/.config/trellis."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home) / "trellis"
    return Path.home() / ".config" / "trellis"


def user_config_path() -> Path:
    return user_config_dir() / "config.json"


def project_config_path(project_dir: Path | None = None) -> Path:
    return (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME


def read_config_file(path: Path) -> Layer:
    """
    Read one JSON config file into a layer.

    A missing file is an empty layer. Unknown sections are dropped with a
    warning.

    Raises:
        ConfigError: If the file is not valid JSON, or it or one of its
            sections is not a JSON object
    """
    if not path.is_file():
        return {}

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration file {path}: expected a JSON object")

    layer: Layer = {}
    for section, settings in data.items():
        if section not in SECTIONS:
            logger.warning("Ignoring unknown config section '%s' in %s", section, path)
            continue
        if not isinstance(settings, dict):
            raise ConfigError(
                f"Invalid configuration file {path}: section '{section}' must be an object"
            )
        layer[section] = settings
    logger.debug("Loaded config layer from %s", path)
    return layer


def env_layer(environ: dict[str, str] | None = None) -> Layer:
    """
    Build the layer contributed by TRELLIS_* environment variables.

    Supported variables are the keys of ENV_OVERRIDES. Blank values are
    unset; a value its parser rejects (e.g. a non-numeric TRELLIS_PORT)
    is logged and skipped.
    """
    if environ is None:
        environ = dict(os.environ)

    layer: Layer = {}
    for name, (section, key, parse) in ENV_OVERRIDES.items():
        raw = environ.get(name)
        if raw is None or not raw.strip():
            continue
        try:
            layer.setdefault(section, {})[key] = parse(raw)
        except ValueError:
            logger.warning("Invalid %s value '%s', ignoring", name, raw)
    return layer


def merge_layers(*layers: Layer) -> Layer:
    """
    Merge layers, later ones winning key by key within each section.

    Example:
        >>> merge_layers({"server": {"port": 1, "host": "a"}}, {"server": {"port": 2}})
        {'server': {'port': 2, 'host': 'a'}}
    """
    merged: Layer = {}
    for layer in layers:
        for section, settings in layer.items():
            merged[section] = {**merged.get(section, {}), **settings}
    return merged


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> TrellisConfig:
    """
    Load configuration from every layer.

    Args:
        project_dir: Directory holding .trellis.json (defaults to cwd)
        use_cache: If True, return the config from a previous load

    Returns:
        Validated TrellisConfig instance

    Raises:
        ConfigError: If a config file is unreadable or the merged config
            fails validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = merge_layers(
        read_config_file(user_config_path()),
        read_config_file(project_config_path(project_dir)),
        env_layer(),
    )

    try:
        config = TrellisConfig.model_validate(merged)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError subclass
        raise ConfigError(f"Invalid configuration: {e}") from e

    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
