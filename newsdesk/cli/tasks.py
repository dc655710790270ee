"""Discovery task commands."""

from typing import List, Optional

import typer
from rich.table import Table

from ..models import Lead, Task
from ..pipeline import BatchResult, NewsdeskService, TaskRunResult
from .common import console, run_service
from .rewrite import print_batch

task_app = typer.Typer(help="Discovery tasks")


def print_run(result: TaskRunResult) -> None:
    console.print(
        f"✅ Task {result.task_id}: {result.found} found, {result.created} leads created "
        f"({result.skipped_no_url} without URL, {result.skipped_duplicate} repeated, "
        f"{result.skipped_existing} already stored; {result.removed} replaced) "
        f"in {result.duration:.1f}s"
    )


async def _run_and_rewrite(service: NewsdeskService, task_id: int, rewrite: bool):
    # The CLI drains in the foreground so results can be printed
    service.tasks.on_completed = None
    result = await service.run_discovery(task_id)
    batch: Optional[BatchResult] = None
    if rewrite and result.created:
        batch = await service.drain_rewrite_queue()
    return result, batch


@task_app.command("create")
def task_create(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Topic to search headlines for"),
    account: Optional[str] = typer.Option(None, "--account", help="Account name override"),
    collection: Optional[str] = typer.Option(None, "--collection", help="Collection UUID override"),
    category: Optional[int] = typer.Option(None, "--category", help="Category ID for created articles"),
    run: bool = typer.Option(False, "--run", help="Run discovery right away"),
    rewrite: bool = typer.Option(True, "--rewrite/--no-rewrite", help="Rewrite leads after --run"),
) -> None:
    """Create a discovery task."""

    async def create(service: NewsdeskService):
        task = service.create_task(query, account, collection, category)
        console.print(f"✅ Created task {task.id}: {task.query}")
        if run:
            return await _run_and_rewrite(service, task.id, rewrite)
        return None, None

    result, batch = run_service(ctx, create)
    if result is not None:
        print_run(result)
    if batch is not None:
        print_batch(batch)


@task_app.command("run")
def task_run(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
    rewrite: bool = typer.Option(True, "--rewrite/--no-rewrite", help="Rewrite new leads afterwards"),
) -> None:
    """Run discovery for a task, replacing the leads of its previous run."""
    result, batch = run_service(ctx, lambda service: _run_and_rewrite(service, task_id, rewrite))
    print_run(result)
    if batch is not None:
        print_batch(batch)


@task_app.command("list")
def task_list(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Number of tasks to show"),
) -> None:
    """List recent tasks."""

    async def fetch(service: NewsdeskService) -> List[Task]:
        return service.storage.list_tasks(limit)

    tasks = run_service(ctx, fetch)
    if not tasks:
        console.print("[yellow]No tasks yet.[/yellow]")
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="cyan")
    table.add_column("Query", style="white")
    table.add_column("Status", style="magenta")
    table.add_column("Updated", style="green")
    table.add_column("Error", style="red")

    for task in tasks:
        table.add_row(
            str(task.id),
            task.query,
            task.status.value,
            task.updated_at.strftime("%Y-%m-%d %H:%M") if task.updated_at else "",
            task.error or "",
        )

    console.print(table)


@task_app.command("leads")
def task_leads(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
) -> None:
    """Show the leads of a task."""

    async def fetch(service: NewsdeskService) -> List[Lead]:
        return service.storage.list_leads_for_task(task_id)

    leads = run_service(ctx, fetch)
    if not leads:
        console.print(f"[yellow]Task {task_id} has no leads.[/yellow]")
        return

    table = Table(title=f"Leads for task {task_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Headline", style="white")
    table.add_column("Source", style="blue")
    table.add_column("Status", style="magenta")
    table.add_column("Article", style="green")

    for lead in leads:
        table.add_row(
            str(lead.id),
            lead.headline,
            lead.source.name,
            lead.status.value,
            str(lead.article_id) if lead.article_id is not None else "-",
        )

    console.print(table)
