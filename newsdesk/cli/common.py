"""Helpers shared by CLI commands."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from ..config import Config
from ..errors import NewsdeskError
from ..pipeline import NewsdeskService, open_service
from ..utils import setup_logger

console = Console()

T = TypeVar("T")


@dataclass
class CLIState:
    """Options given before the sub-command."""

    config_path: Optional[Path] = None
    memory: bool = False


def load_config(state: CLIState) -> Config:
    """Load configuration and set up logging, exiting on a bad file."""
    config = Config(state.config_path)
    try:
        model = config.config
    except FileNotFoundError:
        console.print(f"[red]Config not found: {config.config_path}. Run 'newsdesk init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    setup_logger(level=model.logging.level, log_file=model.logging.file)
    return config


def run_service(ctx: typer.Context, fn: Callable[[NewsdeskService], Awaitable[T]]) -> T:
    """Open a service, run ``fn`` against it and map errors to exit code 1."""
    state: CLIState = ctx.obj
    config = load_config(state)

    async def main() -> T:
        async with open_service(config, in_memory=state.memory) as service:
            return await fn(service)

    try:
        return asyncio.run(main())
    except NewsdeskError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(1)
