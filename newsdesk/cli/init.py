"""Init command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, Config, ConfigModel, save_config
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config-path",
        "-c",
        help="Where to write the configuration file",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsdesk", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsdesk_user", "--db-user", help="Database user"),
    account_name: Optional[str] = typer.Option(
        None, "--account", help="Account name for the query service"
    ),
    skip_db: bool = typer.Option(False, "--skip-db", help="Only write the config file"),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("📰 Newsdesk - Initialization", style="bold blue"))

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "NEWSDESK_DB_PASSWORD",
        },
        service={"account_name": account_name},
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if skip_db:
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = Config.from_model(config).get_db_config()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export NEWSDESK_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Newsdesk initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export NEWSDESK_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set service account: [bold]export NEWSDESK_ACCOUNT_NAME=your_account[/bold]\n"
            f"3. Run: [bold]newsdesk task create \"topic\" --run[/bold]",
            style="green",
        )
    )
