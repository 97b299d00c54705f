"""Pipeline orchestrator that runs one deduplication pass end to end."""

import asyncio
import json
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

import pendulum
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ..clustering import (
    ClusterReport,
    DeduplicationReport,
    MergeApplier,
    SpatialSemanticClusterer,
    merge_reason,
    plan_merges,
)
from ..config import ClusteringConfig, Config
from ..db.store import ProblemStore
from ..embedding import EmbeddingOrchestrator, EmbeddingProvider
from ..models import MergeRun, ProblemRecord

log = logging.getLogger(__name__)
console = Console()


class DeduplicationSettings(BaseModel):
    """Everything a run needs besides its collaborators."""

    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    apply_merges: bool = Field(False, description="Persist merges instead of only suggesting them")
    merged_by: str = Field("merge-function", description="Actor recorded on audit rows")
    include_merged: bool = Field(False, description="Also cluster already-merged problems")
    concurrency_limit: int = Field(5, description="Max in-flight embedding calls", ge=1)
    embedding_timeout: Optional[float] = Field(None, description="Embedding stage timeout in seconds", gt=0)

    @classmethod
    def from_config(cls, config: Config) -> "DeduplicationSettings":
        """Build settings from a loaded config, env overrides included."""
        merge = config.get_merge_config()
        embedding = config.config.embedding
        return cls(
            clustering=config.get_clustering_config(),
            apply_merges=merge.apply_merges,
            merged_by=merge.merged_by,
            include_merged=merge.include_merged,
            concurrency_limit=embedding.concurrency_limit,
            embedding_timeout=embedding.timeout_seconds,
        )

    def params(self) -> Dict[str, Any]:
        """Flat parameter dict recorded with the run."""
        return {
            **self.clustering.model_dump(),
            "apply_merges": self.apply_merges,
            "merged_by": self.merged_by,
            "include_merged": self.include_merged,
            "concurrency_limit": self.concurrency_limit,
            "embedding_timeout": self.embedding_timeout,
        }


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


class DeduplicationPipeline:
    """Fetch, embed, cluster, plan and (optionally) apply merges."""

    def __init__(
        self,
        store: ProblemStore,
        provider: EmbeddingProvider,
        settings: Optional[DeduplicationSettings] = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            store: Source of problems and sink for merges; owned by the caller
            provider: Embedding provider; owned by the caller
            settings: Run settings (defaults if omitted)
        """
        self.store = store
        self.provider = provider
        self.settings = settings or DeduplicationSettings()
        self.stages = [
            PipelineStage("fetch", "Fetching problems"),
            PipelineStage("embeddings", "Embedding problem text"),
            PipelineStage("clustering", "Clustering by location and meaning"),
            PipelineStage("planning", "Selecting masters and planning merges"),
            PipelineStage("applying", "Applying merges"),
        ]
        self.problems: List[ProblemRecord] = []

    def _stage(self, name: str) -> PipelineStage:
        return next(s for s in self.stages if s.name == name)

    @contextmanager
    def _running(self, name: str) -> Iterator[PipelineStage]:
        stage = self._stage(name)
        stage.start()
        log.debug("Stage %s started", name)
        try:
            yield stage
        except BaseException as e:
            stage.fail(str(e) or type(e).__name__)
            raise
        if not stage.end_time:
            stage.complete()

    def run(self) -> DeduplicationReport:
        """Synchronous wrapper for run_async."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> DeduplicationReport:
        """
        Run the deduplication pipeline once.

        Raises:
            EmbeddingStageError: if any embedding fails; nothing is clustered
                or merged
            ProblemStoreError: if problems cannot be fetched
        """
        run = MergeRun(
            id=str(uuid4()),
            started_at=pendulum.now("UTC"),
            status="running",
            params_json=self.settings.params(),
        )
        self.store.start_run(run)
        log.info("Run %s started (apply_merges=%s)", run.id, self.settings.apply_merges)

        try:
            report = await self._execute(run)
        except BaseException as e:
            run.status = "failed"
            run.finished_at = pendulum.now("UTC")
            run.stats_json = {"error": str(e) or type(e).__name__}
            try:
                self.store.finish_run(run)
            except Exception as finish_error:
                log.error("Could not record failure of run %s: %s", run.id, finish_error)
            raise

        run.status = "success"
        run.finished_at = report.finished_at
        run.stats_json = report.stats()
        try:
            self.store.finish_run(run)
        except Exception as finish_error:
            # Merges may already be persisted; keep the report
            log.error("Could not record completion of run %s: %s", run.id, finish_error)
        log.info("Run %s finished: %s", run.id, report.stats())
        return report

    async def _execute(self, run: MergeRun) -> DeduplicationReport:
        """Execute the pipeline stages."""
        settings = self.settings

        with self._running("fetch") as stage:
            self.problems = self.store.fetch_problems(include_merged=settings.include_merged)
            stage.complete({"problems": len(self.problems)})

        with self._running("embeddings") as stage:
            orchestrator = EmbeddingOrchestrator(self.provider, settings.concurrency_limit)
            embeddings = await orchestrator.embed_with_timeout(
                self.problems, settings.embedding_timeout
            )
            stage.complete({"embedded": len(embeddings)})

        with self._running("clustering") as stage:
            clusterer = SpatialSemanticClusterer(settings.clustering)
            clusters = clusterer.cluster(self.problems, embeddings)
            stage.complete({
                "clusters": len(clusters),
                "duplicate_clusters": sum(1 for c in clusters if c.size > 1),
            })

        with self._running("planning") as stage:
            by_id = {p.id: p for p in self.problems}
            embeddings_by_id = {p.id: e for p, e in zip(self.problems, embeddings)}
            cluster_reports = []
            for cluster in clusters:
                members = [by_id[member_id] for member_id in cluster.member_ids]
                plan = plan_merges(members, embeddings_by_id)
                cluster_reports.append(ClusterReport(cluster=cluster, plan=plan))
            stage.complete({"merge_actions": sum(len(c.plan.actions) for c in cluster_reports)})

        with self._running("applying") as stage:
            if settings.apply_merges:
                self._apply(run, cluster_reports)
                stage.complete({
                    "applied": sum(1 for c in cluster_reports for o in c.outcomes if o.success),
                    "failed": sum(1 for c in cluster_reports for o in c.outcomes if not o.success),
                })
            else:
                stage.complete({"dry_run": True})

        return DeduplicationReport(
            run_id=run.id,
            params=settings.params(),
            started_at=run.started_at,
            finished_at=pendulum.now("UTC"),
            total_problems=len(self.problems),
            clusters=cluster_reports,
        )

    def _apply(self, run: MergeRun, cluster_reports: List[ClusterReport]) -> None:
        applier = MergeApplier(
            store=self.store,
            merged_by=self.settings.merged_by,
            run_id=run.id,
            reason=merge_reason(self.settings.clustering),
        )
        for cluster_report in cluster_reports:
            if not cluster_report.plan.actions:
                continue
            cluster_report.applied = True
            cluster_report.outcomes = applier.apply(cluster_report.plan)


def save_report(report: DeduplicationReport, path: Path) -> None:
    """Write a run report as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = report.model_dump(mode="json")
    data["stats"] = report.stats()
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def print_report_summary(report: DeduplicationReport, stages: Optional[List[PipelineStage]] = None) -> None:
    """Print a run summary."""
    if stages:
        stage_table = Table(title="Pipeline Stages")
        stage_table.add_column("Stage", style="cyan")
        stage_table.add_column("Status", style="bold")
        stage_table.add_column("Duration", style="yellow")
        for stage in stages:
            status = "[green]ok[/green]" if stage.success else "[red]failed[/red]"
            duration = f"{stage.duration:.2f}s" if stage.duration > 0 else "-"
            stage_table.add_row(stage.name.title(), status, duration)
        console.print(stage_table)

    duplicates = report.duplicate_clusters
    if not duplicates:
        console.print(f"[green]No duplicates among {report.total_problems} problems.[/green]")
        return

    table = Table(title=f"Duplicate Clusters (run {report.run_id})")
    table.add_column("Master", style="cyan")
    table.add_column("Merged", style="magenta")
    table.add_column("Similarity", style="green")
    table.add_column("Distance", style="yellow")
    table.add_column("Result", style="bold")

    for cluster_report in duplicates:
        outcomes = {o.member_id: o for o in cluster_report.outcomes}
        for action in cluster_report.plan.actions:
            outcome = outcomes.get(action.member_id)
            if outcome is None:
                result = "[dim]suggested[/dim]"
            elif outcome.success:
                result = "[green]merged[/green]"
            else:
                result = f"[red]{outcome.error}[/red]"
            table.add_row(
                action.master_id,
                action.member_id,
                f"{action.similarity:.3f}" if action.similarity is not None else "-",
                f"{action.distance_meters:.0f} m" if action.distance_meters is not None else "-",
                result,
            )

    console.print(table)
    console.print(
        f"{report.total_problems} problems, {len(duplicates)} duplicate clusters, "
        f"{report.merge_action_count} merge actions"
        + (f", {report.applied_count} applied, {report.failed_count} failed" if report.applied_count or report.failed_count else "")
    )
