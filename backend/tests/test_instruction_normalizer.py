"""Tests for instruction field repair and deduplication."""
from __future__ import annotations

from app.services.instruction_normalizer import (
    deduplicate_instructions,
    normalize_instruction,
    normalize_instructions,
)


def test_localized_title_label_is_renamed() -> None:
    instruction = {"type": "step", "operation": "create", "data": {"Název": "Buy milk"}}

    normalized = normalize_instruction(instruction)

    assert normalized["data"] == {"title": "Buy milk"}
    assert instruction["data"] == {"Název": "Buy milk"}


def test_name_label_maps_to_name_for_named_types() -> None:
    normalized = normalize_instruction({"type": "habit", "operation": "create", "data": {"Název": "Meditace"}})

    assert normalized["data"] == {"name": "Meditace"}


def test_known_labels_and_snake_case_are_repaired_unknown_kept() -> None:
    normalized = normalize_instruction(
        {
            "type": "step",
            "operation": "update",
            "data": {"Cíl ID": "g1", "area_id": "a1", "Datum": "2026-01-06", "mood": "good"},
        }
    )

    assert normalized["data"] == {"goalId": "g1", "areaId": "a1", "date": "2026-01-06", "mood": "good"}


def test_creates_with_same_identity_collapse() -> None:
    first = {"type": "step", "operation": "create", "data": {"title": "Call dentist"}}
    second = {"type": "step", "operation": "create", "data": {"title": "Call dentist", "date": "2026-01-06"}}

    assert deduplicate_instructions([first, second]) == [first]


def test_creates_with_different_titles_are_kept() -> None:
    first = {"type": "step", "operation": "create", "data": {"title": "Call dentist"}}
    second = {"type": "step", "operation": "create", "data": {"title": "Book flight"}}

    assert deduplicate_instructions([first, second]) == [first, second]


def test_completes_collapse_only_with_same_filter_and_date() -> None:
    base = {"type": "habit", "operation": "complete", "filter": {"type": "all"}, "date": "2026-01-05"}
    same = dict(base)
    other_day = {**base, "date": "2026-01-06"}

    assert deduplicate_instructions([base, same, other_day]) == [base, other_day]


def test_updates_collapse_only_when_identical() -> None:
    update = {"type": "step", "operation": "update", "filter": {"type": "ids", "values": ["s1"]}, "data": {"title": "A"}}
    changed = {**update, "data": {"title": "B"}}

    assert deduplicate_instructions([update, dict(update), changed]) == [update, changed]


def test_repair_runs_before_deduplication() -> None:
    instructions = [
        {"type": "goal", "operation": "create", "data": {"Název": "Marathon"}},
        {"type": "goal", "operation": "create", "data": {"title": "Marathon"}},
    ]

    assert normalize_instructions(instructions) == [
        {"type": "goal", "operation": "create", "data": {"title": "Marathon"}},
    ]


def test_non_mapping_entries_pass_through() -> None:
    assert normalize_instructions(["oops", None]) == ["oops", None]
