"""Runs command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH
from ..db import close_connection_pool, get_connection, validate_connection
from ..db.runs import RunManager
from .common import load_cli_config

console = Console()


def runs_command(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Configuration file"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of runs to show", min=1),
) -> None:
    """List recent deduplication runs."""
    config = load_cli_config(config_path)
    db_config = config.get_db_config()

    try:
        if not validate_connection(db_config):
            console.print("[red]Database connection failed![/red]")
            raise typer.Exit(1)

        with get_connection(db_config) as conn:
            runs = RunManager().get_recent_runs(conn, limit=limit)
    finally:
        close_connection_pool()

    if not runs:
        console.print("[yellow]No runs recorded yet.[/yellow]")
        return

    table = Table(title="Recent Runs")
    table.add_column("Run", style="cyan")
    table.add_column("Started", style="magenta")
    table.add_column("Status", style="bold")
    table.add_column("Problems", style="green")
    table.add_column("Merges", style="yellow")

    for run in runs:
        stats = run.get("stats_json") or {}
        status = run["status"]
        color = {"success": "green", "failed": "red"}.get(status, "yellow")
        table.add_row(
            str(run["id"]),
            run["started_at"].strftime("%Y-%m-%d %H:%M"),
            f"[{color}]{status}[/{color}]",
            str(stats.get("total_problems", "-")),
            f"{stats.get('applied', 0)}/{stats.get('merge_actions', 0)}",
        )

    console.print(table)
