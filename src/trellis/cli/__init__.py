"""
Trellis CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from trellis import __version__
from trellis.cli import cache, serve, stats
from trellis.cli.errors import report_error
from trellis.cli.logging_config import setup_logging
from trellis.core.config import load_config
from trellis.core.config.env import load_layered_env
from trellis.core.errors import TrellisError

app = typer.Typer(
    name="trellis",
    help="Cached, access-scoped dashboard statistics for projects and tasks",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"trellis version {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show trellis version and exit",
    ),
) -> None:
    """
    Trellis - dashboard statistics for projects and tasks.

    Examples:
        trellis serve                     # Run the dashboard API
        trellis stats --user u-1          # Summary for one caller
        trellis cache clear --user u-1    # Drop one caller's cached entries
    """
    # .env files feed TRELLIS_* overrides, so they load before the config
    load_layered_env()
    try:
        config = load_config()
    except TrellisError as e:
        raise typer.Exit(report_error(e))
    setup_logging(config.logging.level, debug=debug)

    # Store debug flag in context for subcommands
    ctx.obj = {"debug": debug}


app.command(name="serve")(serve.serve)
app.command(name="stats")(stats.stats)
app.add_typer(cache.app, name="cache")


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
