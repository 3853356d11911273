"""
Standardized error handling and exit codes for the trellis CLI.
"""

from enum import IntEnum

from rich.console import Console

from trellis.core.errors import CacheUnavailableError, ConfigError, StoreError, TrellisError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for trellis CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic runtime failure (store or cache unavailable)."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Cache unavailable",
        ...     reason="Connection refused",
        ...     solution="export TRELLIS_CACHE_ENABLED=false",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def report_error(error: TrellisError) -> ExitCode:
    """
    Print a trellis error with guidance and pick its exit code.

    Returns:
        Exit code the command should exit with
    """
    if isinstance(error, ConfigError):
        print_error(
            "Invalid configuration",
            reason=str(error),
            solution="check .trellis.json and TRELLIS_* environment variables",
        )
        return ExitCode.USER_ERROR
    if isinstance(error, CacheUnavailableError):
        print_error(
            "Cache unavailable",
            reason=str(error),
            solution="check TRELLIS_REDIS_URL, or export TRELLIS_CACHE_ENABLED=false",
        )
        return ExitCode.GENERAL_ERROR
    if isinstance(error, StoreError):
        print_error(
            "Store unavailable",
            reason=str(error),
            solution="check TRELLIS_DB_PATH points at a readable database",
        )
        return ExitCode.GENERAL_ERROR
    print_error(str(error))
    return ExitCode.GENERAL_ERROR
