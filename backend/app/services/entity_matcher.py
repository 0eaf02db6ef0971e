"""Offline matching of free text against the user's goals and areas.

A deliberately small keyword heuristic: it runs without another model call and
every match can be explained by pointing at the shared words.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

EXACT_MATCH_SCORE = 100.0
OVERLAP_WEIGHT = 50.0
MATCH_THRESHOLD = 30.0
MIN_TOKEN_LENGTH = 3


@dataclass
class EntityMatch:
    goal_id: Optional[str] = None
    area_id: Optional[str] = None
    goal_score: float = 0.0
    area_score: float = 0.0

    @property
    def found(self) -> bool:
        return bool(self.goal_id or self.area_id)


def find_matching_goal_and_area(
    query: str,
    goals: Sequence[Mapping[str, Any]],
    areas: Sequence[Mapping[str, Any]],
) -> EntityMatch:
    """Match ``query`` against goal titles and area names independently."""
    normalized = (query or "").lower().strip()
    if not normalized:
        return EntityMatch()

    query_tokens = [token for token in normalized.split() if len(token) >= MIN_TOKEN_LENGTH]
    goal_id, goal_score = _best_match(normalized, query_tokens, goals, "title")
    area_id, area_score = _best_match(normalized, query_tokens, areas, "name")
    return EntityMatch(goal_id=goal_id, area_id=area_id, goal_score=goal_score, area_score=area_score)


def score_candidate(normalized_query: str, query_tokens: List[str], candidate_name: str) -> float:
    """Score one candidate name; 100 for containment, otherwise weighted token overlap."""
    if normalized_query in candidate_name or candidate_name in normalized_query:
        return EXACT_MATCH_SCORE

    candidate_tokens = candidate_name.split()
    common = [
        token
        for token in query_tokens
        if any(token in candidate_token or candidate_token in token for candidate_token in candidate_tokens)
    ]
    if not common:
        return 0.0
    return len(common) / max(len(query_tokens), len(candidate_tokens)) * OVERLAP_WEIGHT


def _best_match(
    normalized_query: str,
    query_tokens: List[str],
    candidates: Sequence[Mapping[str, Any]],
    name_key: str,
) -> Tuple[Optional[str], float]:
    best_id: Optional[str] = None
    best_score = 0.0
    for candidate in candidates:
        name = str(candidate.get(name_key) or "").lower().strip()
        if not name:
            continue
        score = score_candidate(normalized_query, query_tokens, name)
        if score == EXACT_MATCH_SCORE:
            # First exact match wins; later candidates are not considered.
            best_id, best_score = candidate.get("id"), score
            break
        if score > best_score:
            best_id, best_score = candidate.get("id"), score

    if best_id is None or best_score < MATCH_THRESHOLD:
        return None, best_score
    return str(best_id), best_score
