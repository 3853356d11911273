"""
Trellis CLI - Cache commands.

Invalidate cached dashboard aggregates.
"""

import asyncio

import typer
from rich.console import Console

from trellis.cli.errors import report_error
from trellis.core.cache import CacheAside, create_cache_backend
from trellis.core.config import TrellisConfig, load_config
from trellis.core.dashboard.invalidation import DashboardInvalidator
from trellis.core.errors import TrellisError

app = typer.Typer(
    name="cache",
    help="Manage the dashboard cache",
    no_args_is_help=True,
)

console = Console()


async def clear_dashboard_cache(config: TrellisConfig, user_id: str | None = None) -> int:
    """
    Invalidate dashboard entries for one user, or all of them.

    Returns:
        Number of cache keys removed
    """
    backend = create_cache_backend(config.cache)
    try:
        invalidator = DashboardInvalidator(CacheAside(backend))
        if user_id is None:
            return await invalidator.clear_all()
        return await invalidator.user_changed(user_id)
    finally:
        await backend.close()


@app.command()
def clear(
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        help="Only clear entries cached for this user",
    ),
) -> None:
    """
    Clear cached dashboard aggregates.

    Examples:
        trellis cache clear              # Clear every dashboard entry
        trellis cache clear --user u-1   # Clear one user's entries
    """
    try:
        config = load_config()
        if not config.cache.enabled:
            console.print("[yellow]Cache is disabled; nothing to clear[/yellow]")
            return
        removed = asyncio.run(clear_dashboard_cache(config, user))
    except TrellisError as e:
        raise typer.Exit(report_error(e))

    target = f"user {user}" if user else "all users"
    console.print(f"[green]Cleared {removed} dashboard cache entries for {target}[/green]")
