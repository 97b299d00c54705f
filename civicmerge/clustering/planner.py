"""Master selection and merge planning.

Pure functions: nothing here touches the problem store.
"""

from typing import Dict, List, Optional, Sequence

from ..config import ClusteringConfig
from ..models import ProblemRecord
from .models import MergeAction, MergePlan
from .similarity import similarity_edge


def rank_members(members: Sequence[ProblemRecord]) -> List[ProblemRecord]:
    """
    Order cluster members by master preference.

    Most votes first, then newest first. The sort is stable, so members that
    tie on both keep their input order.
    """
    return sorted(
        members,
        key=lambda p: (p.votes_count, p.created_at.timestamp()),
        reverse=True,
    )


def select_master(members: Sequence[ProblemRecord]) -> ProblemRecord:
    """Pick the master of a non-empty cluster."""
    if not members:
        raise ValueError("Cannot select a master from an empty cluster")
    return rank_members(members)[0]


def suggested_statement(member_id: str, master_id: str) -> str:
    """SQL an operator can review or run to perform one merge."""
    master = master_id.replace("'", "''")
    member = member_id.replace("'", "''")
    return f"UPDATE public.problems SET merged_into = '{master}' WHERE id = '{member}';"


def merge_reason(config: ClusteringConfig) -> str:
    """Reason string recorded on audit rows."""
    return (
        f"auto-merged by spatial+semantic cluster "
        f"(eps={config.spatial_eps_meters:g}m,sim={config.similarity_threshold:g})"
    )


def plan_merges(
    members: Sequence[ProblemRecord],
    embeddings_by_id: Optional[Dict[str, Sequence[float]]] = None,
) -> MergePlan:
    """
    Build the merge plan for one cluster.

    Args:
        members: Cluster members (at least one)
        embeddings_by_id: When given, each action carries the similarity and
            distance between the member and the master

    Returns:
        Plan whose actions merge every non-master member into the master; a
        single-member cluster yields no actions
    """
    ranked = rank_members(members)
    if not ranked:
        raise ValueError("Cannot plan merges for an empty cluster")
    master = ranked[0]

    actions = []
    for member in ranked[1:]:
        similarity = None
        distance = None
        if embeddings_by_id is not None:
            edge = similarity_edge(
                master, member, embeddings_by_id[master.id], embeddings_by_id[member.id]
            )
            similarity = edge.similarity
            distance = edge.distance_meters

        actions.append(
            MergeAction(
                member_id=member.id,
                master_id=master.id,
                statement=suggested_statement(member.id, master.id),
                similarity=similarity,
                distance_meters=distance,
            )
        )

    return MergePlan(
        master_id=master.id,
        member_ids=[p.id for p in ranked],
        actions=actions,
    )
