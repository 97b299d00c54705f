"""Graph command implementation."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..clustering import build_similarity_graph
from ..config import DEFAULT_CONFIG_PATH
from ..db import close_connection_pool
from ..errors import CivicMergeError
from ..pipeline import DeduplicationPipeline
from .common import build_provider, build_settings, build_store, execute, load_cli_config

console = Console()


def graph_command(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Configuration file"),
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="JSON file of problems to use instead of the database",
        exists=True,
        dir_okay=False,
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", help="Override embedding provider (openai, ollama, mock)"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the graph JSON here"),
) -> None:
    """Export the duplicate-similarity graph (never applies merges)."""
    config = load_cli_config(config_path, allow_defaults=input_path is not None)

    try:
        settings = build_settings(config, apply=False)
        store = build_store(config, input_path)
        pipeline = DeduplicationPipeline(store, build_provider(config, provider), settings)

        report, problems = execute(pipeline)
        graph = build_similarity_graph(report, problems)

        payload = json.dumps(graph.to_dict(), indent=2)
        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(payload, encoding="utf-8")
            console.print(f"Graph with {len(graph.nodes)} nodes and {len(graph.edges)} edges written to {output}")
        else:
            print(payload)

    except CivicMergeError as e:
        console.print(f"[red]Graph export failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()
