"""Similarity graph export."""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models import ProblemRecord
from .models import DeduplicationReport


class GraphNode(BaseModel):
    id: str
    type: str = "problem"
    label: str


class GraphEdge(BaseModel):
    source: str
    target: str
    type: str = "similar"
    strength: Optional[float] = Field(None, description="Similarity between the two problems")


class SimilarityGraph(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


def build_similarity_graph(
    report: DeduplicationReport,
    problems: Sequence[ProblemRecord],
) -> SimilarityGraph:
    """
    Build a node/edge view of a run: one node per problem, one "similar" edge
    from each master to every member merged into it.
    """
    by_id = {p.id: p for p in problems}
    graph = SimilarityGraph()

    for cluster_report in report.clusters:
        for problem_id in cluster_report.plan.member_ids:
            problem = by_id.get(problem_id)
            graph.nodes.append(
                GraphNode(id=problem_id, label=problem.title if problem else problem_id)
            )

        for action in cluster_report.plan.actions:
            graph.edges.append(
                GraphEdge(
                    source=action.master_id,
                    target=action.member_id,
                    strength=action.similarity,
                )
            )

    return graph
