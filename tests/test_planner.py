"""Tests for master selection and merge planning."""

import pytest

from civicmerge.clustering import merge_reason, plan_merges, select_master, suggested_statement
from civicmerge.config import ClusteringConfig

from .helpers import BLR, BLR_NEAR, make_problem


def test_master_has_most_votes():
    a = make_problem("a", votes=3, minutes=10)
    b = make_problem("b", votes=7, minutes=0)

    assert select_master([a, b]).id == "b"


def test_vote_tie_newest_wins():
    older = make_problem("older", votes=4, minutes=0)
    newer = make_problem("newer", votes=4, minutes=5)

    assert select_master([older, newer]).id == "newer"
    assert select_master([newer, older]).id == "newer"


def test_full_tie_keeps_input_order():
    first = make_problem("first", votes=1, minutes=0)
    second = make_problem("second", votes=1, minutes=0)

    assert select_master([first, second]).id == "first"
    assert select_master([second, first]).id == "second"


def test_select_master_rejects_empty():
    with pytest.raises(ValueError):
        select_master([])


def test_plan_merges_non_masters_into_master():
    members = [
        make_problem("a", votes=1),
        make_problem("b", votes=9),
        make_problem("c", votes=2),
    ]

    plan = plan_merges(members)

    assert plan.master_id == "b"
    assert plan.member_ids == ["b", "c", "a"]
    assert [(a.member_id, a.master_id) for a in plan.actions] == [("c", "b"), ("a", "b")]
    assert plan.actions[0].statement == (
        "UPDATE public.problems SET merged_into = 'b' WHERE id = 'c';"
    )


def test_single_member_plan_has_no_actions():
    plan = plan_merges([make_problem("solo")])

    assert plan.master_id == "solo"
    assert plan.member_ids == ["solo"]
    assert plan.actions == []


def test_plan_with_embeddings_reports_edge_features():
    members = [make_problem("a", BLR, votes=3), make_problem("b", BLR_NEAR, votes=7)]

    plan = plan_merges(members, {"a": [1.0, 0.0], "b": [1.0, 0.0]})

    action = plan.actions[0]
    assert action.member_id == "a"
    assert action.similarity == pytest.approx(1.0)
    assert 20 < action.distance_meters < 40


def test_plan_without_embeddings_leaves_features_empty():
    plan = plan_merges([make_problem("a"), make_problem("b")])

    assert plan.actions[0].similarity is None
    assert plan.actions[0].distance_meters is None


def test_statement_escapes_quotes():
    statement = suggested_statement("o'brien", "master")
    assert "WHERE id = 'o''brien'" in statement


def test_merge_reason_mentions_thresholds():
    reason = merge_reason(ClusteringConfig(spatial_eps_meters=500, similarity_threshold=0.8))
    assert reason == "auto-merged by spatial+semantic cluster (eps=500m,sim=0.8)"
