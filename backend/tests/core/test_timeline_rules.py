"""Timeline Rules - verifies system item derivation and Gantt validation.

Tests cover:
    - Seeded planning items relative to today
    - Derived request_date / process_completed / prep_time items
    - Date parsing, item type normalization, range check
    - Order index floor and reorder payload validation
"""

from datetime import date

import pytest

from projectcreator.core.domain_types import TimelineItemType
from projectcreator.core.errors import ValidationError
from projectcreator.core.timeline_rules import (
    check_date_range, derived_system_items, next_order_index,
    normalize_item_type, parse_date, planning_seed_items, validate_reorder,
)


# ─── Seeded items ────────────────────────────────────────────────

def test_seed_items_without_preparation_days():
    today = date(2026, 3, 2)
    items = {i.key: i for i in planning_seed_items(today, None)}
    assert [i.order_index for i in items.values()] == [0, 1, 2]
    assert items["desired_execution_date"].start == today
    assert items["required_preparation"].end == today


def test_seed_items_with_preparation_days():
    today = date(2026, 3, 2)
    items = {i.key: i for i in planning_seed_items(today, 10)}
    assert items["desired_execution_date"].start == date(2026, 3, 12)
    assert items["required_preparation"].start == today
    assert items["required_preparation"].end == date(2026, 3, 11)


# ─── Derived items ───────────────────────────────────────────────

def _summary(status, process_date=None, earliest=None):
    return {
        "requestDate": "2026-03-02",
        "processCompleted": {"status": status, "date": process_date},
        "earliestExecutionDate": earliest,
    }


def test_incomplete_process_has_open_ended_phase_and_no_prep_time():
    upserts, deletes = derived_system_items(_summary("incomplete"))
    by_key = {u.key: u for u in upserts}
    assert by_key["request_date"].item_type is TimelineItemType.MILESTONE
    assert by_key["request_date"].end == date(2026, 3, 2)
    assert by_key["process_completed"].end is None
    assert "prep_time" not in by_key
    assert deletes == ["prep_time"]


def test_complete_process_adds_prep_time():
    upserts, deletes = derived_system_items(_summary("complete", "2026-03-20", "2026-04-03"))
    by_key = {u.key: u for u in upserts}
    assert by_key["process_completed"].end == date(2026, 3, 20)
    assert by_key["prep_time"].start == date(2026, 3, 20)
    assert by_key["prep_time"].end == date(2026, 4, 3)
    assert by_key["prep_time"].order_index == 2
    assert deletes == []


# ─── Validation ──────────────────────────────────────────────────

def test_parse_date_handles_blanks_and_datetimes():
    assert parse_date(None) is None
    assert parse_date("  ") is None
    assert parse_date("2026-03-02T10:00:00+00:00") == date(2026, 3, 2)


def test_parse_date_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_date("next tuesday")


def test_item_type_defaults_to_phase():
    assert normalize_item_type(None) is TimelineItemType.PHASE
    assert normalize_item_type(" Milestone ") is TimelineItemType.MILESTONE
    with pytest.raises(ValidationError):
        normalize_item_type("epic")


def test_end_before_start_is_rejected():
    check_date_range(date(2026, 1, 1), None)
    with pytest.raises(ValidationError):
        check_date_range(date(2026, 1, 2), date(2026, 1, 1))


def test_next_order_index_floor_is_three():
    assert next_order_index(None) == 3
    assert next_order_index(2) == 3
    assert next_order_index(11) == 12


def test_reorder_requires_exact_non_system_set():
    assert validate_reorder([5, "4", 5, 0, "x"], [4, 5]) == [5, 4]
    with pytest.raises(ValidationError):
        validate_reorder([4], [4, 5])
