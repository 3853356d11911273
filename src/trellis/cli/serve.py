"""
Trellis CLI - Serve command.

Run the dashboard API with uvicorn.
"""

import logging

import typer
from rich.console import Console

from trellis.cli.errors import ExitCode, report_error
from trellis.core.config import load_config
from trellis.core.errors import TrellisError

console = Console()
logger = logging.getLogger(__name__)

APP_FACTORY = "trellis.core.dashboard.api.app:create_app"


def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(
        None,
        "--host",
        help="Interface to bind (default: server.host from config)",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to run the server on (default: server.port from config)",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        help="Restart the server when source files change",
    ),
) -> None:
    """
    Run the dashboard API server.

    Stores and cache are chosen from configuration (.trellis.json and
    TRELLIS_* environment variables).

    Examples:
        trellis serve                    # Serve on the configured host/port
        trellis serve --port 3000        # Serve on port 3000
        trellis serve --reload           # Auto-reload during development
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False

    try:
        config = load_config()
    except TrellisError as e:
        raise typer.Exit(report_error(e))

    bind_host = host or config.server.host
    bind_port = port or config.server.port

    import uvicorn

    console.print(f"[green]Trellis dashboard API on http://{bind_host}:{bind_port}[/green]")
    console.print(
        f"[dim]store={config.store.backend} "
        f"cache={config.cache.backend if config.cache.enabled else 'disabled'}[/dim]"
    )
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")
    logger.debug("Starting uvicorn with factory %s", APP_FACTORY)

    try:
        # Run server (this blocks)
        uvicorn.run(
            APP_FACTORY,
            factory=True,
            host=bind_host,
            port=bind_port,
            reload=reload,
            log_level="debug" if debug else config.logging.level.lower(),
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)
