"""Helpers shared by the run and graph commands."""

import asyncio
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console

from ..config import ClusteringConfig, Config, ConfigModel
from ..db import InMemoryProblemStore, PostgresProblemStore, ProblemStore, load_problems_file, validate_connection
from ..embedding import EmbeddingProvider, get_embedding_provider
from ..log import setup_logging
from ..pipeline import DeduplicationPipeline, DeduplicationSettings

console = Console()

# Set by the app callback; wins over the configured level
log_level_override: Optional[str] = None


def load_cli_config(config_path: Path, allow_defaults: bool = False) -> Config:
    """Load config for a command, falling back to defaults when allowed."""
    if not config_path.exists():
        if not allow_defaults:
            console.print(
                f"[red]Config file not found: {config_path}. Run 'civicmerge init' first.[/red]"
            )
            raise typer.Exit(1)
        config = Config(config_path, config=ConfigModel())
    else:
        config = Config(config_path)
        try:
            config.config
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    setup_logging(log_level_override or config.config.logging.level)
    return config


def build_settings(
    config: Config,
    apply: Optional[bool] = None,
    eps: Optional[float] = None,
    threshold: Optional[float] = None,
    min_samples: Optional[int] = None,
    concurrency: Optional[int] = None,
    timeout: Optional[float] = None,
) -> DeduplicationSettings:
    """Merge command-line overrides into the configured settings."""
    settings = DeduplicationSettings.from_config(config)

    clustering = settings.clustering.model_dump()
    if eps is not None:
        clustering["spatial_eps_meters"] = eps
    if threshold is not None:
        clustering["similarity_threshold"] = threshold
    if min_samples is not None:
        clustering["min_samples"] = min_samples

    updates = {"clustering": ClusteringConfig(**clustering)}
    if apply is not None:
        updates["apply_merges"] = apply
    if concurrency is not None:
        updates["concurrency_limit"] = concurrency
    if timeout is not None:
        updates["embedding_timeout"] = timeout

    return DeduplicationSettings(**{**settings.model_dump(exclude={"clustering"}), **updates})


def build_store(config: Config, input_path: Optional[Path]) -> ProblemStore:
    """In-memory store for a problems file, Postgres otherwise."""
    if input_path is not None:
        return InMemoryProblemStore(load_problems_file(input_path))

    db_config = config.get_db_config()
    console.print("[dim]Checking database connection...[/dim]")
    if not validate_connection(db_config):
        console.print("[red]Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)
    return PostgresProblemStore(db_config)


def build_provider(config: Config, provider_name: Optional[str]) -> EmbeddingProvider:
    """Embedding provider from config, optionally overriding its kind."""
    embedding_config = config.get_embedding_config()
    if provider_name and provider_name.lower() != embedding_config["provider"]:
        # The configured model belongs to the configured provider
        embedding_config["provider"] = provider_name
        embedding_config["model"] = None
    return get_embedding_provider(embedding_config)


def execute(pipeline: DeduplicationPipeline) -> Tuple:
    """Run the pipeline and close the provider on the same event loop."""

    async def _run():
        try:
            return await pipeline.run_async()
        finally:
            await pipeline.provider.aclose()

    return asyncio.run(_run()), pipeline.problems
