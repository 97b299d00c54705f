"""Density-based clustering with a joint spatial and semantic neighbor predicate.

Two problems are neighbors only when both have coordinates, they lie within
``spatial_eps_meters`` of each other and their embeddings reach
``similarity_threshold``. Points are visited in input order, so the same input
always yields the same clusters. A border point reachable from two clusters
stays with the first cluster that reached it.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..config import ClusteringConfig
from ..models import ProblemRecord
from .models import Cluster
from .similarity import cosine_similarity, haversine_distance_meters

log = logging.getLogger(__name__)


class PointStatus(Enum):
    """Clustering state of a single point."""

    UNVISITED = "unvisited"
    NOISE = "noise"
    ASSIGNED = "assigned"


@dataclass(frozen=True)
class PointLabel:
    """Point state; ``cluster_id`` is set only when ASSIGNED."""

    status: PointStatus
    cluster_id: Optional[int] = None

    @classmethod
    def assigned(cls, cluster_id: int) -> "PointLabel":
        return cls(PointStatus.ASSIGNED, cluster_id)


UNVISITED = PointLabel(PointStatus.UNVISITED)
NOISE = PointLabel(PointStatus.NOISE)


class SpatialSemanticClusterer:
    """DBSCAN over problems using distance AND similarity as the neighbor test."""

    def __init__(self, config: ClusteringConfig) -> None:
        """
        Initialize clusterer.

        Args:
            config: Distance/similarity thresholds and minimum neighborhood size
        """
        self.config = config

    def _is_neighbor(
        self,
        a: ProblemRecord,
        b: ProblemRecord,
        embedding_a: Sequence[float],
        embedding_b: Sequence[float],
    ) -> bool:
        if not (a.has_location and b.has_location):
            return False

        distance = haversine_distance_meters(a.latitude, a.longitude, b.latitude, b.longitude)
        if distance > self.config.spatial_eps_meters:
            return False

        return cosine_similarity(embedding_a, embedding_b) >= self.config.similarity_threshold

    def _neighbors(
        self,
        index: int,
        problems: Sequence[ProblemRecord],
        embeddings: Sequence[Sequence[float]],
        cache: Dict[int, List[int]],
    ) -> List[int]:
        """Indices of all neighbors of ``index``, in input order."""
        if index in cache:
            return cache[index]

        point = problems[index]
        result = []
        if point.has_location:
            for other in range(len(problems)):
                if other == index:
                    continue
                if self._is_neighbor(point, problems[other], embeddings[index], embeddings[other]):
                    result.append(other)

        cache[index] = result
        return result

    def _is_core(self, neighbor_count: int) -> bool:
        # The point itself counts towards min_samples
        return neighbor_count + 1 >= self.config.min_samples

    def fit(
        self,
        problems: Sequence[ProblemRecord],
        embeddings: Sequence[Sequence[float]],
    ) -> List[Optional[int]]:
        """
        Assign a cluster id to every problem.

        Returns:
            Labels index-aligned with ``problems``; None marks noise

        Raises:
            ValueError: if problems and embeddings are not index-aligned
        """
        if len(problems) != len(embeddings):
            raise ValueError(
                f"Got {len(problems)} problems but {len(embeddings)} embeddings"
            )

        labels: List[PointLabel] = [UNVISITED] * len(problems)
        cache: Dict[int, List[int]] = {}
        next_cluster_id = 0

        for i in range(len(problems)):
            if labels[i].status is not PointStatus.UNVISITED:
                continue

            seeds = self._neighbors(i, problems, embeddings, cache)
            if not self._is_core(len(seeds)):
                # May still be claimed as a border point by a later cluster
                labels[i] = NOISE
                continue

            cluster_id = next_cluster_id
            next_cluster_id += 1
            labels[i] = PointLabel.assigned(cluster_id)

            queue = deque(seeds)
            queued = set(seeds)
            while queue:
                j = queue.popleft()
                label = labels[j]

                if label.status is PointStatus.ASSIGNED:
                    continue

                labels[j] = PointLabel.assigned(cluster_id)
                if label.status is PointStatus.NOISE:
                    # Already known not to be a core point
                    continue

                neighbors_j = self._neighbors(j, problems, embeddings, cache)
                if not self._is_core(len(neighbors_j)):
                    continue

                for m in neighbors_j:
                    if m not in queued and labels[m].status is not PointStatus.ASSIGNED:
                        queued.add(m)
                        queue.append(m)

        log.debug(
            "Clustered %d problems into %d clusters (%d noise)",
            len(problems),
            next_cluster_id,
            sum(1 for label in labels if label.status is PointStatus.NOISE),
        )
        return [label.cluster_id for label in labels]

    def cluster(
        self,
        problems: Sequence[ProblemRecord],
        embeddings: Sequence[Sequence[float]],
    ) -> List[Cluster]:
        """
        Group problems into clusters.

        Clusters are ordered by their first member's input position; each noise
        point is reported as its own single-member cluster.
        """
        labels = self.fit(problems, embeddings)

        # Keyed by cluster id, or by a negative slot for each noise point
        groups: Dict[int, List[str]] = {}
        cluster_ids: Dict[int, Optional[int]] = {}
        for index, (problem, cluster_id) in enumerate(zip(problems, labels)):
            key = cluster_id if cluster_id is not None else -(index + 1)
            if key not in groups:
                groups[key] = []
                cluster_ids[key] = cluster_id
            groups[key].append(problem.id)

        return [
            Cluster(cluster_id=cluster_ids[key], member_ids=member_ids)
            for key, member_ids in groups.items()
        ]


def cluster_problems(
    problems: Sequence[ProblemRecord],
    embeddings: Sequence[Sequence[float]],
    config: Optional[ClusteringConfig] = None,
) -> List[Cluster]:
    """Cluster problems with the given (or default) thresholds."""
    return SpatialSemanticClusterer(config or ClusteringConfig()).cluster(problems, embeddings)
