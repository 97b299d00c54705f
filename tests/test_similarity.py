"""Tests for the similarity and distance primitives."""

import math

import pytest

from civicmerge.clustering import (
    EARTH_RADIUS_METERS,
    cosine_similarity,
    haversine_distance_meters,
    similarity_edge,
)

from .helpers import BLR, BLR_NEAR, make_problem


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.2, 0.5, 0.1], [0.2, 0.5, 0.1]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == 0.0

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        a = [0.3, -0.7, 0.2, 0.9]
        b = [0.1, 0.4, -0.5, 0.8]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_zero_vector_returns_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_zero_vector_never_passes_threshold(self):
        assert not cosine_similarity([0.0, 0.0], [0.0, 0.0]) >= 0.8

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    def test_result_clamped(self):
        v = [0.1] * 768
        assert cosine_similarity(v, v) <= 1.0


class TestHaversine:
    def test_identical_points(self):
        assert haversine_distance_meters(*BLR, *BLR) == 0.0

    def test_symmetric(self):
        assert haversine_distance_meters(0.0, 0.0, 10.0, 10.0) == haversine_distance_meters(10.0, 10.0, 0.0, 0.0)

    def test_known_distance(self):
        # (0, 0) to (10, 10) is about 1,568 km
        assert haversine_distance_meters(0.0, 0.0, 10.0, 10.0) == pytest.approx(1_568_000, rel=0.01)

    def test_one_degree_latitude(self):
        expected = EARTH_RADIUS_METERS * math.pi / 180
        assert haversine_distance_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected)

    def test_antipodal_points(self):
        distance = haversine_distance_meters(0.0, 0.0, 0.0, 180.0)
        assert not math.isnan(distance)
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_METERS)

    def test_pole_to_pole(self):
        distance = haversine_distance_meters(90.0, 0.0, -90.0, 0.0)
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_METERS)

    def test_nearby_points(self):
        distance = haversine_distance_meters(*BLR, *BLR_NEAR)
        assert 20 < distance < 40


class TestSimilarityEdge:
    def test_edge_features(self):
        a = make_problem("a", BLR)
        b = make_problem("b", BLR_NEAR)
        edge = similarity_edge(a, b, [1.0, 0.0], [1.0, 0.0])
        assert edge.source_id == "a"
        assert edge.target_id == "b"
        assert edge.similarity == pytest.approx(1.0)
        assert 20 < edge.distance_meters < 40

    def test_edge_without_location(self):
        a = make_problem("a", None)
        b = make_problem("b", BLR)
        edge = similarity_edge(a, b, [1.0, 0.0], [0.0, 1.0])
        assert edge.distance_meters is None
        assert edge.similarity == 0.0
