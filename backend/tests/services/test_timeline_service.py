"""Integration Tests: TimelineService - Gantt items, derived system items and summary.

Tests cover:
    - index() derives request_date / process_completed / prep_time from the board
    - create: validation, milestone end date, order after system items
    - update: system items keep label and order, "" clears a date
    - destroy: system items protected, foreign items rejected
    - reorder: exact non-system id set, indices from 10
"""

from datetime import datetime, timezone

import pytest

from projectcreator.core.errors import (
    PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from projectcreator.core.timeline_planning import first_monday_on_or_after
from projectcreator.services.project_service import ProjectDraft, ProjectService
from projectcreator.services.timeline_service import TimelineService


def _by_key(items):
    return {item["systemKey"]: item for item in items if item["systemKey"]}


def _mark_required_done(platform, project, when):
    board_id = int(project.board_id)
    for card in platform.deck.stack_by_order(board_id, 1).cards:
        card.done = when


# ==============================================================================
# index / summary
# ==============================================================================


async def test_index_derives_system_items(test_db, platform, project):
    request = first_monday_on_or_after(project.created_at.date()).isoformat()

    items = await TimelineService(test_db, platform).index(project)

    assert [i["systemKey"] for i in items] == [
        "request_date", "desired_execution_date", "process_completed", "required_preparation",
    ]
    system = _by_key(items)
    assert system["request_date"]["startDate"] == request
    assert system["request_date"]["itemType"] == "milestone"
    assert system["process_completed"]["startDate"] == request
    assert system["process_completed"]["endDate"] is None
    assert "prep_time" not in system


async def test_index_adds_prep_time_when_complete(test_db, platform, project):
    _mark_required_done(platform, project, datetime(2026, 3, 10, 12, tzinfo=timezone.utc))

    items = await TimelineService(test_db, platform).index(project)

    system = _by_key(items)
    assert system["process_completed"]["endDate"] == "2026-03-10"
    assert system["prep_time"]["startDate"] == "2026-03-10"
    assert system["prep_time"]["endDate"] == "2026-03-10"


async def test_index_survives_board_failure(test_db, platform, project):
    platform.fail("deck.list_stacks")

    items = await TimelineService(test_db, platform).index(project)

    assert _by_key(items)["process_completed"]["endDate"] is None


async def test_summary_incomplete_for_fresh_board(test_db, platform, project):
    summary = await TimelineService(test_db, platform).summary(project)

    process = summary["processCompleted"]
    assert process["status"] == "incomplete"
    assert process["doneCount"] == 0
    assert process["totalRequired"] == 5
    assert summary["earliestExecutionDate"] is None


# ==============================================================================
# create / update / destroy
# ==============================================================================


async def test_create_orders_after_system_items(test_db, platform, project):
    service = TimelineService(test_db, platform)

    first = await service.create(project, "Design", "2026-05-01", "2026-05-10")
    second = await service.create(project, "Build", "2026-05-11")

    assert first.order_index == 3
    assert second.order_index == 4
    assert first.color == "#3b82f6"
    assert first.item_type == "phase"
    assert second.end_date is None


async def test_create_milestone_ends_on_start(test_db, platform, project):
    item = await TimelineService(test_db, platform).create(
        project, "Go live", "2026-06-01", "2026-06-30", item_type="Milestone",
    )
    assert item.item_type == "milestone"
    assert item.end_date == item.start_date


@pytest.mark.parametrize("label, start, end, message", [
    ("", "2026-05-01", None, "Missing label"),
    ("X", None, None, "Missing start date"),
    ("X", "2026-05-10", "2026-05-01", "End date cannot be before start date"),
    ("X", "01-05-2026", None, "Invalid date"),
])
async def test_create_validation(test_db, platform, project, label, start, end, message):
    with pytest.raises(ValidationError, match=message):
        await TimelineService(test_db, platform).create(project, label, start, end)


async def test_update_user_item(test_db, platform, project):
    service = TimelineService(test_db, platform)
    item = await service.create(project, "Design", "2026-05-01", "2026-05-10")

    updated = await service.update(project, item.id, label="Design v2", end_date="", order_index=7)

    assert updated.label == "Design v2"
    assert updated.end_date is None
    assert updated.order_index == 7


async def test_update_system_item_keeps_identity(test_db, platform, project):
    service = TimelineService(test_db, platform)
    system = _by_key(await service.index(project))["process_completed"]

    updated = await service.update(
        project, system["id"], label="Renamed", start_date="2026-01-05",
        item_type="milestone", order_index=99, color="#000000",
    )

    assert updated.label == "Process Completed"
    assert updated.item_type == "phase"
    assert updated.order_index == 1
    assert updated.start_date.isoformat() == "2026-01-05"
    assert updated.color == "#000000"


async def test_update_rejects_inverted_range(test_db, platform, project):
    service = TimelineService(test_db, platform)
    item = await service.create(project, "Design", "2026-05-01", "2026-05-10")
    with pytest.raises(ValidationError):
        await service.update(project, item.id, start_date="2026-06-01")


async def test_destroy(test_db, platform, project):
    service = TimelineService(test_db, platform)
    item = await service.create(project, "Temp", "2026-05-01")
    system = _by_key(await service.index(project))["request_date"]

    assert await service.destroy(project, item.id) == {"success": True}
    with pytest.raises(PermissionDeniedError, match="System timeline items"):
        await service.destroy(project, system["id"])
    with pytest.raises(ResourceNotFoundError):
        await service.destroy(project, item.id)


async def test_items_of_other_projects_rejected(test_db, platform, project, caller_for):
    alice = await caller_for("alice")
    other = await ProjectService(test_db, platform).create_project(
        alice, ProjectDraft(name="Beta", number="P-002", type=1),
    )
    service = TimelineService(test_db, platform)
    item = await service.create(other, "Elsewhere", "2026-05-01")

    with pytest.raises(PermissionDeniedError, match="does not belong"):
        await service.update(project, item.id, label="Hijack")


# ==============================================================================
# reorder
# ==============================================================================


async def test_reorder_assigns_from_ten(test_db, platform, project):
    service = TimelineService(test_db, platform)
    a = await service.create(project, "A", "2026-05-01")
    b = await service.create(project, "B", "2026-05-02")

    items = await service.reorder(project, [b.id, a.id, b.id])

    user_items = [i for i in items if not i["systemKey"]]
    assert [(i["label"], i["orderIndex"]) for i in user_items] == [("B", 10), ("A", 11)]


async def test_reorder_requires_exact_set(test_db, platform, project):
    service = TimelineService(test_db, platform)
    a = await service.create(project, "A", "2026-05-01")
    await service.create(project, "B", "2026-05-02")

    with pytest.raises(ValidationError, match="Missing ids"):
        await service.reorder(project, [])
    with pytest.raises(ValidationError, match="Invalid reorder payload"):
        await service.reorder(project, [a.id])
