"""
Trellis CLI - Stats command.

Print the dashboard summary for a caller without running the server.
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from trellis.cli.errors import report_error
from trellis.core.cache import CacheAside, create_cache_backend
from trellis.core.config import TrellisConfig, load_config
from trellis.core.dashboard.models import DashboardSummary
from trellis.core.dashboard.service import DashboardService
from trellis.core.errors import TrellisError
from trellis.core.store import get_stores

console = Console()


async def fetch_summary(config: TrellisConfig, user_id: str, role: str) -> DashboardSummary:
    """Build the service from configuration and compute one summary."""
    stores = get_stores(config)
    backend = create_cache_backend(config.cache)
    try:
        service = DashboardService(stores.projects, stores.tasks, CacheAside(backend))
        return await service.get_summary(user_id, role)
    finally:
        await backend.close()


def render_summary(summary: DashboardSummary, user_id: str) -> Table:
    table = Table(title=f"Dashboard for {user_id}", show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Projects", str(summary.total_projects))
    table.add_row("Tasks", str(summary.total_tasks))
    table.add_row("Completion rate", f"{summary.completion_rate}%")
    table.add_row("My tasks", str(summary.my_tasks))
    table.add_row("Overdue", str(summary.overdue_tasks))
    table.add_section()
    for status, count in summary.tasks_by_status.model_dump().items():
        table.add_row(f"status: {status}", str(count))
    for priority, count in summary.tasks_by_priority.model_dump().items():
        table.add_row(f"priority: {priority}", str(count))
    for status, count in summary.projects_by_status.model_dump().items():
        table.add_row(f"projects {status}", str(count))
    table.add_section()
    activity = summary.recent_activity
    table.add_row("Created (7 days)", str(activity.tasks_created_this_week))
    table.add_row("Completed (7 days)", str(activity.tasks_completed_this_week))
    return table


def stats(
    user: str = typer.Option(..., "--user", "-u", help="Caller user id"),
    role: str = typer.Option("user", "--role", "-r", help="Caller role (admin or user)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Show the dashboard summary a caller would see.

    Examples:
        trellis stats --user u-1             # Summary as a table
        trellis stats --user u-1 --json      # Summary as camelCase JSON
        trellis stats --user root --role admin
    """
    try:
        config = load_config()
        summary = asyncio.run(fetch_summary(config, user, role))
    except TrellisError as e:
        raise typer.Exit(report_error(e))

    if json_output:
        console.print_json(summary.model_dump_json(by_alias=True))
        return

    console.print(render_summary(summary, user))
