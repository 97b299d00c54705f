"""Clustering and merge planning models."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import MergeAuditRecord


class SimilarityEdge(BaseModel):
    """Pairwise features between two problems."""

    source_id: str = Field(..., description="First problem")
    target_id: str = Field(..., description="Second problem")
    similarity: float = Field(..., description="Cosine similarity of the embeddings")
    distance_meters: Optional[float] = Field(None, description="Great-circle distance, None without coordinates")


class Cluster(BaseModel):
    """Problems grouped by the clustering engine."""

    cluster_id: Optional[int] = Field(None, description="Engine cluster id, None for noise")
    member_ids: List[str] = Field(..., min_length=1, description="Members in input order")

    @property
    def is_noise(self) -> bool:
        """Whether this is a single unclustered point."""
        return self.cluster_id is None

    @property
    def size(self) -> int:
        return len(self.member_ids)


class MergeAction(BaseModel):
    """A proposed merge of one member into its cluster master."""

    member_id: str = Field(..., description="Problem to merge")
    master_id: str = Field(..., description="Surviving master problem")
    statement: str = Field(..., description="Reviewable SQL for the mutation")
    similarity: Optional[float] = Field(None, description="Similarity between member and master")
    distance_meters: Optional[float] = Field(None, description="Distance between member and master")


class MergePlan(BaseModel):
    """Master selection and merge actions for one cluster."""

    master_id: str = Field(..., description="Chosen master problem")
    member_ids: List[str] = Field(..., description="All cluster members, master first")
    actions: List[MergeAction] = Field(default_factory=list, description="Merges for non-master members")


class MergeOutcome(BaseModel):
    """Result of applying one merge action."""

    member_id: str = Field(..., description="Problem that was merged")
    master_id: str = Field(..., description="Master it was merged into")
    success: bool = Field(..., description="Whether both the update and the audit write succeeded")
    error: Optional[str] = Field(None, description="Error detail if the action failed")
    audit: Optional[MergeAuditRecord] = Field(None, description="Audit row written on success")


class ClusterReport(BaseModel):
    """Per-cluster section of a run report."""

    cluster: Cluster
    plan: MergePlan
    applied: bool = Field(False, description="Whether merges were attempted for this cluster")
    outcomes: List[MergeOutcome] = Field(default_factory=list, description="Per-action results")


class DeduplicationReport(BaseModel):
    """Result of one deduplication run."""

    run_id: str = Field(..., description="Run identifier")
    params: Dict[str, Any] = Field(..., description="Parameters the run used")
    started_at: datetime = Field(..., description="When the run started")
    finished_at: Optional[datetime] = Field(None, description="When the run finished")
    total_problems: int = Field(0, description="Problems considered")
    clusters: List[ClusterReport] = Field(default_factory=list, description="Clusters, noise included")

    @property
    def merge_action_count(self) -> int:
        return sum(len(c.plan.actions) for c in self.clusters)

    @property
    def applied_count(self) -> int:
        return sum(1 for c in self.clusters for o in c.outcomes if o.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for c in self.clusters for o in c.outcomes if not o.success)

    @property
    def duplicate_clusters(self) -> List[ClusterReport]:
        """Clusters with at least two members."""
        return [c for c in self.clusters if c.cluster.size > 1]

    def stats(self) -> Dict[str, int]:
        """Aggregate counts for run bookkeeping."""
        return {
            "total_problems": self.total_problems,
            "clusters": len(self.clusters),
            "duplicate_clusters": len(self.duplicate_clusters),
            "merge_actions": self.merge_action_count,
            "applied": self.applied_count,
            "failed": self.failed_count,
        }
