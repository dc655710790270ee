"""Scheduled topic search commands."""

from typing import List, Optional

import typer
from rich.table import Table

from ..models import ScheduledSearch, SearchLog, TaskStatus
from ..pipeline import NewsdeskService
from .common import console, run_service
from .rewrite import print_batch

schedule_app = typer.Typer(help="Scheduled topic searches")


@schedule_app.command("add")
def schedule_add(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Topic to search for"),
    every: int = typer.Option(24, "--every", min=1, help="Interval in hours"),
    category: Optional[int] = typer.Option(None, "--category", help="Category ID for created articles"),
) -> None:
    """Schedule a recurring topic search."""

    async def add(service: NewsdeskService) -> ScheduledSearch:
        return service.storage.create_scheduled_search(topic, every, category)

    search = run_service(ctx, add)
    console.print(f"✅ Scheduled search {search.id}: {search.topic!r} every {search.interval_hours}h")


@schedule_app.command("run")
def schedule_run(
    ctx: typer.Context,
    rewrite: bool = typer.Option(True, "--rewrite/--no-rewrite", help="Rewrite new leads afterwards"),
) -> None:
    """Run every scheduled search that is due."""

    async def run(service: NewsdeskService):
        service.tasks.on_completed = None
        outcomes = await service.run_due_searches()
        batch = None
        if rewrite and any(o.created for o in outcomes):
            batch = await service.drain_rewrite_queue()
        return outcomes, batch

    outcomes, batch = run_service(ctx, run)
    if not outcomes:
        console.print("[yellow]No searches due.[/yellow]")
        return

    table = Table(title="Scheduled searches")
    table.add_column("Search", style="cyan")
    table.add_column("Topic", style="white")
    table.add_column("Task", style="blue")
    table.add_column("Status", style="magenta")
    table.add_column("Leads", style="green")

    for outcome in outcomes:
        status = outcome.status.value
        if outcome.status == TaskStatus.FAILED:
            status = f"[red]failed: {outcome.error}[/red]"
        table.add_row(
            str(outcome.search_id),
            outcome.topic,
            str(outcome.task_id or "-"),
            status,
            str(outcome.created),
        )

    console.print(table)

    if batch is not None:
        print_batch(batch)


@schedule_app.command("logs")
def schedule_logs(
    ctx: typer.Context,
    search_id: Optional[int] = typer.Option(None, "--search", help="Only logs of this search"),
    limit: int = typer.Option(20, "--limit", min=1, help="Number of logs to show"),
) -> None:
    """Show recent scheduled search runs."""

    async def logs(service: NewsdeskService) -> List[SearchLog]:
        return service.storage.list_search_logs(search_id, limit)

    entries = run_service(ctx, logs)
    if not entries:
        console.print("[yellow]No search logs yet.[/yellow]")
        return

    table = Table(title="Search logs")
    table.add_column("Search", style="cyan")
    table.add_column("Topic", style="white")
    table.add_column("Window", style="blue")
    table.add_column("Found", style="green")
    table.add_column("Created", style="green")
    table.add_column("Status", style="magenta")
    table.add_column("When", style="dim")

    for entry in entries:
        status = entry.status.value
        if entry.status == TaskStatus.FAILED:
            status = f"[red]failed: {entry.error}[/red]"
        table.add_row(
            str(entry.search_id or "-"),
            entry.topic,
            entry.time_span or "",
            str(entry.items_found),
            str(entry.items_processed),
            status,
            entry.created_at.strftime("%Y-%m-%d %H:%M") if entry.created_at else "",
        )

    console.print(table)
