"""
Logging setup for CLI commands.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", debug: bool = False) -> None:
    """
    Configure root logging on stderr.

    Args:
        level: Level name from configuration
        debug: If True, force DEBUG regardless of ``level``
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
