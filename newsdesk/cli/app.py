"""Main CLI application."""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .common import CLIState
from .init import init_command
from .rewrite import rewrite_app
from .schedule import schedule_app
from .tasks import task_app

app = typer.Typer(
    name="newsdesk",
    help="Newsdesk - headline discovery and multilingual article rewriting",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Config file (default: ~/.config/newsdesk/config.yaml)",
    ),
    memory: bool = typer.Option(
        False,
        "--memory",
        help="Dry run against in-memory storage instead of Postgres",
    ),
) -> None:
    """Newsdesk command line."""
    ctx.obj = CLIState(config_path=config_path, memory=memory)


# Register commands
app.command("init")(init_command)
app.add_typer(task_app, name="task", help="Discovery tasks")
app.add_typer(rewrite_app, name="rewrite", help="Rewrite queue")
app.add_typer(schedule_app, name="schedule", help="Scheduled topic searches")


if __name__ == "__main__":
    app()
