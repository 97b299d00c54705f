"""Similarity and distance primitives."""

import math
from typing import Optional, Sequence

from ..models import ProblemRecord
from .models import SimilarityEdge

EARTH_RADIUS_METERS = 6_371_000.0


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero magnitude so that a degenerate
    embedding can never pass a similarity threshold.

    Raises:
        ValueError: if the vectors differ in length
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = dot / math.sqrt(norm_a * norm_b)
    # Rounding can push parallel vectors marginally past 1
    return max(-1.0, min(1.0, similarity))


def haversine_distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    a = max(0.0, min(1.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def problem_distance_meters(a: ProblemRecord, b: ProblemRecord) -> Optional[float]:
    """Distance between two problems, None if either lacks coordinates."""
    if not (a.has_location and b.has_location):
        return None
    return haversine_distance_meters(a.latitude, a.longitude, b.latitude, b.longitude)


def similarity_edge(
    a: ProblemRecord,
    b: ProblemRecord,
    embedding_a: Sequence[float],
    embedding_b: Sequence[float],
) -> SimilarityEdge:
    """Compute the pairwise features between two problems."""
    return SimilarityEdge(
        source_id=a.id,
        target_id=b.id,
        similarity=cosine_similarity(embedding_a, embedding_b),
        distance_meters=problem_distance_meters(a, b),
    )
