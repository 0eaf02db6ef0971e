"""Tests for offline goal/area matching."""
from __future__ import annotations

import pytest

from app.services.entity_matcher import EXACT_MATCH_SCORE, find_matching_goal_and_area

GOALS = [{"id": "g1", "title": "Learn Spanish"}]


def test_containment_scores_exact_match() -> None:
    match = find_matching_goal_and_area("progress on Learn Spanish", GOALS, [])

    assert match.goal_id == "g1"
    assert match.goal_score == EXACT_MATCH_SCORE


def test_token_overlap_above_threshold_matches() -> None:
    match = find_matching_goal_and_area("spanish learning", GOALS, [])

    assert match.goal_id == "g1"
    assert match.goal_score == pytest.approx(50.0)


def test_single_shared_token_in_long_query_stays_below_threshold() -> None:
    # 1 shared token / max(3, 2) tokens * 50 is about 16.7, under the 30 threshold.
    match = find_matching_goal_and_area("book Spanish lesson", GOALS, [])

    assert match.goal_id is None
    assert match.goal_score == pytest.approx(50 / 3)


def test_unrelated_query_does_not_match() -> None:
    match = find_matching_goal_and_area("buy groceries", GOALS, [])

    assert match.goal_id is None
    assert match.goal_score == 0.0
    assert match.found is False


def test_first_exact_match_wins() -> None:
    goals = [
        {"id": "g1", "title": "Run"},
        {"id": "g2", "title": "Run marathon"},
    ]
    match = find_matching_goal_and_area("run marathon in spring", goals, [])

    assert match.goal_id == "g1"


def test_goals_and_areas_match_independently() -> None:
    areas = [{"id": "a1", "name": "Health"}, {"id": "a2", "name": ""}]
    match = find_matching_goal_and_area("learn spanish for better health", GOALS, areas)

    assert match.goal_id == "g1"
    assert match.area_id == "a1"


def test_empty_query_never_matches() -> None:
    match = find_matching_goal_and_area("   ", GOALS, [{"id": "a1", "name": "Health"}])

    assert match.found is False
