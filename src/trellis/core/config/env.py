"""
.env loading for the CLI.

Files are handed to python-dotenv highest precedence first with
``override=False``, so a file never replaces a variable that is already
set. The process environment therefore beats every file, and each file
beats the ones after it:

    os.environ > ./.env.local > ./.env > $XDG_CONFIG_HOME/trellis/.env
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from dotenv import load_dotenv

from .loader import user_config_dir

logger = logging.getLogger(__name__)


def env_file_paths(project_dir: Path | None = None) -> list[Path]:
    """Candidate .env files, highest precedence first."""
    project_dir = project_dir or Path.cwd()
    return [project_dir / ".env.local", project_dir / ".env", user_config_dir() / ".env"]


def load_layered_env(paths: Iterable[Path] | None = None) -> list[Path]:
    """
    Load .env files into os.environ without overriding existing variables.

    Args:
        paths: Files in precedence order, highest first (defaults to
            env_file_paths())

    Returns:
        The files that existed and were loaded
    """
    loaded = []
    for path in env_file_paths() if paths is None else paths:
        if path.is_file():
            load_dotenv(path, override=False)
            loaded.append(path)
    if loaded:
        logger.debug("Loaded env files: %s", ", ".join(str(p) for p in loaded))
    return loaded
