"""Spatial + semantic clustering and merge planning."""

from .applier import MergeApplier
from .dbscan import PointLabel, PointStatus, SpatialSemanticClusterer, cluster_problems
from .graph import SimilarityGraph, build_similarity_graph
from .models import (
    Cluster,
    ClusterReport,
    DeduplicationReport,
    MergeAction,
    MergeOutcome,
    MergePlan,
    SimilarityEdge,
)
from .planner import merge_reason, plan_merges, rank_members, select_master, suggested_statement
from .similarity import (
    EARTH_RADIUS_METERS,
    cosine_similarity,
    haversine_distance_meters,
    problem_distance_meters,
    similarity_edge,
)

__all__ = [
    "Cluster",
    "ClusterReport",
    "DeduplicationReport",
    "EARTH_RADIUS_METERS",
    "MergeAction",
    "MergeApplier",
    "MergeOutcome",
    "MergePlan",
    "PointLabel",
    "PointStatus",
    "SimilarityEdge",
    "SimilarityGraph",
    "SpatialSemanticClusterer",
    "build_similarity_graph",
    "cluster_problems",
    "cosine_similarity",
    "haversine_distance_meters",
    "merge_reason",
    "plan_merges",
    "problem_distance_meters",
    "rank_members",
    "select_master",
    "similarity_edge",
    "suggested_statement",
]
