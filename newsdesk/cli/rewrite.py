"""Rewrite queue commands."""

import typer
from rich.table import Table

from ..pipeline import BatchResult, NewsdeskService, Outcome
from .common import console, run_service

rewrite_app = typer.Typer(help="Rewrite queue")


def print_batch(batch: BatchResult) -> None:
    if not batch.processed:
        console.print("[yellow]Nothing to rewrite.[/yellow]")
        return

    table = Table(title="Rewrite results")
    table.add_column("ID", style="cyan")
    table.add_column("Headline", style="white")
    table.add_column("Result", style="magenta")
    table.add_column("Notes", style="dim")

    for item in batch.details:
        if item.outcome == Outcome.SUCCESS:
            result = "[green]rewritten[/green]"
            notes = ""
            if item.fallbacks:
                notes = "kept English: " + ", ".join(sorted(item.fallbacks))
        else:
            result = "[red]error[/red]"
            notes = item.error or ""
        table.add_row(str(item.id), (item.headline or "")[:60], result, notes)

    console.print(table)
    console.print(
        f"{batch.processed} processed, [green]{batch.succeeded} rewritten[/green], "
        f"[red]{batch.failed} failed[/red]"
    )


@rewrite_app.command("drain")
def rewrite_drain(ctx: typer.Context) -> None:
    """Rewrite every lead waiting for content."""

    async def drain(service: NewsdeskService) -> BatchResult:
        return await service.drain_rewrite_queue()

    print_batch(run_service(ctx, drain))


@rewrite_app.command("article")
def rewrite_article(
    ctx: typer.Context,
    article_id: int = typer.Argument(..., help="Article ID"),
) -> None:
    """Rewrite one article."""

    async def rewrite(service: NewsdeskService) -> BatchResult:
        return await service.rewrite_one(article_id)

    batch = run_service(ctx, rewrite)
    print_batch(batch)
    if batch.failed:
        raise typer.Exit(1)


@rewrite_app.command("retry")
def rewrite_retry(
    ctx: typer.Context,
    lead_id: int = typer.Argument(..., help="Lead ID in error status"),
    drain: bool = typer.Option(False, "--drain", help="Drain the queue afterwards"),
) -> None:
    """Put a failed lead back in the rewrite queue."""

    async def retry(service: NewsdeskService):
        service.requeue_lead(lead_id)
        console.print(f"✅ Lead {lead_id} queued for rewrite")
        if drain:
            return await service.drain_rewrite_queue()
        return None

    batch = run_service(ctx, retry)
    if batch is not None:
        print_batch(batch)
