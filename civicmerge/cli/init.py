"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, ConfigModel, save_config
from ..db import close_connection_pool, init_database, validate_connection

console = Console()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file to create",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("civicmerge", "--db-name", help="Database name"),
    db_user: str = typer.Option("civicmerge", "--db-user", help="Database user"),
    embedding_provider: str = typer.Option(
        "openai",
        "--embedding-provider",
        help="Embedding provider (openai, ollama, mock)",
    ),
    init_db: bool = typer.Option(
        True,
        "--init-db/--no-init-db",
        help="Create the database schema",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Initialize civicmerge configuration and database."""
    console.print(Panel.fit("civicmerge - Initialization", style="bold blue"))

    if config_path.exists() and not force:
        console.print(f"[red]Config already exists: {config_path} (use --force to overwrite)[/red]")
        raise typer.Exit(1)

    embedding = {"provider": embedding_provider}
    if embedding_provider.lower() == "ollama":
        embedding["model"] = "nomic-embed-text"

    try:
        config = ConfigModel(
            postgres={
                "host": db_host,
                "port": db_port,
                "database": db_name,
                "user": db_user,
                "password_env": "CIVICMERGE_DB_PASSWORD",
            },
            embedding=embedding,
        )
    except ValueError as e:
        console.print(f"[red]Invalid settings: {e}[/red]")
        raise typer.Exit(1)

    save_config(config, config_path)
    console.print(f"Created config: {config_path}")

    if not init_db:
        console.print("[dim]Skipping database setup[/dim]")
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    try:
        if not validate_connection(db_config):
            console.print(
                "[red]Database connection failed![/red]\n"
                "Please ensure Postgres is running and credentials are correct.\n"
                "Set the password via environment variable: "
                "[bold]export CIVICMERGE_DB_PASSWORD=your_password[/bold]"
            )
            raise typer.Exit(1)

        console.print("Database connection successful")
        console.print("\n[bold]Initializing database schema...[/bold]")
        try:
            init_database(db_config)
        except Exception as e:
            console.print(f"[red]Failed to initialize database: {e}[/red]")
            raise typer.Exit(1)
    finally:
        close_connection_pool()

    console.print(
        Panel(
            f"[green]civicmerge initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export CIVICMERGE_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set embedding API key: [bold]export OPENAI_API_KEY=your_key[/bold]\n"
            f"3. Dry run: [bold]civicmerge run[/bold]",
            style="green",
        )
    )
