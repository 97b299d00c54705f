"""Run command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import DEFAULT_CONFIG_PATH
from ..db import InMemoryProblemStore, close_connection_pool
from ..errors import CivicMergeError, EmbeddingStageError
from ..pipeline import DeduplicationPipeline, print_report_summary, save_report
from .common import build_provider, build_settings, build_store, execute, load_cli_config

console = Console()


def run_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file",
    ),
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="JSON file of problems to use instead of the database",
        exists=True,
        dir_okay=False,
    ),
    apply: Optional[bool] = typer.Option(
        None,
        "--apply/--dry-run",
        help="Persist merges (default: configured value, normally dry run)",
    ),
    eps: Optional[float] = typer.Option(None, "--eps", help="Max neighbor distance in meters", min=0.0),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", help="Min cosine similarity", min=-1.0, max=1.0
    ),
    min_samples: Optional[int] = typer.Option(None, "--min-samples", help="Min neighborhood size", min=1),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", help="Max concurrent embedding calls", min=1
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Embedding stage timeout (seconds)"),
    provider: Optional[str] = typer.Option(
        None, "--provider", help="Override embedding provider (openai, ollama, mock)"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report as JSON"),
) -> None:
    """Cluster duplicate problems and suggest (or apply) merges."""
    config = load_cli_config(config_path, allow_defaults=input_path is not None)

    try:
        settings = build_settings(config, apply, eps, threshold, min_samples, concurrency, timeout)
        store = build_store(config, input_path)
        pipeline = DeduplicationPipeline(store, build_provider(config, provider), settings)

        report, _ = execute(pipeline)

        print_report_summary(report, pipeline.stages)
        if settings.apply_merges and isinstance(store, InMemoryProblemStore):
            console.print("[yellow]Merges were applied to the in-memory copy of the input only.[/yellow]")

        if output:
            save_report(report, output)
            console.print(f"Report written to {output}")

        if report.failed_count:
            console.print(f"[yellow]{report.failed_count} merge actions failed; see the report.[/yellow]")

    except EmbeddingStageError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except (CivicMergeError, ValueError) as e:
        console.print(f"[red]Run failed: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user[/yellow]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()
