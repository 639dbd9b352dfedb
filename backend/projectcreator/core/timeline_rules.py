"""Timeline Rules - system item definitions and validation for Gantt items.

Invariants:
    - System items are identified by system_key and never deleted by users
    - Seeded planning items: request_date (0), desired_execution_date (1), required_preparation (2)
    - Derived items: request_date (0), process_completed (1), prep_time (2, complete only)
    - User items are ordered after system items: order_index >= 3
    - Reorder payload must be exactly the set of non-system item ids; indices start at 10
    - end_date >= start_date whenever both are set; milestones have end == start

Design Decisions:
    - Seeded and derived items share the request_date key; the derived sync wins on read
    - Date params arrive as strings; "" means clear, None means unchanged
"""

from dataclasses import dataclass
from datetime import date, timedelta

from projectcreator.core.domain_types import ProcessStatus, TimelineItemType
from projectcreator.core.errors import ValidationError

DEFAULT_ITEM_COLOR = "#3b82f6"
FIRST_USER_ORDER_INDEX = 3
REORDER_START_INDEX = 10


@dataclass(frozen=True)
class SystemItemDef:
    key: str
    label: str
    start: date | None
    end: date | None
    color: str
    item_type: TimelineItemType
    order_index: int


def planning_seed_items(today: date, preparation_days: int | None) -> list[SystemItemDef]:
    """Baseline planning items written when a project is created."""
    prep_days = max(0, int(preparation_days or 0))
    desired = today + timedelta(days=prep_days)
    prep_end = desired - timedelta(days=1) if prep_days > 0 else desired
    return [
        SystemItemDef("request_date", "Request Date", today, today,
                       "#64748b", TimelineItemType.PHASE, 0),
        SystemItemDef("desired_execution_date", "Desired Execution Date", desired, desired,
                       "#f59e0b", TimelineItemType.PHASE, 1),
        SystemItemDef("required_preparation", "Required Preparation", today, prep_end,
                       "#10b981", TimelineItemType.PHASE, 2),
    ]


def derived_system_items(summary: dict) -> tuple[list[SystemItemDef], list[str]]:
    """Items to upsert and system keys to delete, from a scheduling summary."""
    upserts: list[SystemItemDef] = []
    deletes: list[str] = []

    request = parse_date(summary.get("requestDate"))
    process = summary.get("processCompleted") or {}
    status = str(process.get("status") or "")
    process_date = parse_date(process.get("date"))
    earliest = parse_date(summary.get("earliestExecutionDate"))
    complete = status == ProcessStatus.COMPLETE.value and process_date is not None

    if request is not None:
        upserts.append(SystemItemDef(
            "request_date", "Request Date", request, request,
            "#0f172a", TimelineItemType.MILESTONE, 0,
        ))
        upserts.append(SystemItemDef(
            "process_completed", "Process Completed", request,
            process_date if complete else None,
            "#10b981" if complete else "#f59e0b",
            TimelineItemType.PHASE, 1,
        ))

    if complete and earliest is not None:
        upserts.append(SystemItemDef(
            "prep_time", "Prep Time", process_date, earliest,
            "#3b82f6", TimelineItemType.PHASE, 2,
        ))
    else:
        deletes.append("prep_time")

    return upserts, deletes


def parse_date(value: object) -> date | None:
    """YYYY-MM-DD (a longer ISO datetime is truncated) or None for blanks."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {text}")


def normalize_item_type(value: str | None) -> TimelineItemType:
    text = (value or "").strip().lower() or TimelineItemType.PHASE.value
    try:
        return TimelineItemType(text)
    except ValueError:
        raise ValidationError("Invalid item type", field="itemType")


def check_date_range(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError("End date cannot be before start date", field="endDate")


def next_order_index(current_max: int | None) -> int:
    return max(FIRST_USER_ORDER_INDEX, (current_max or 0) + 1)


def validate_reorder(ids: list, non_system_ids: list[int]) -> list[int]:
    """De-duplicate, drop non-positive ids, and require the exact non-system set."""
    ordered: list[int] = []
    for raw in ids:
        try:
            item_id = int(raw)
        except (TypeError, ValueError):
            continue
        if item_id > 0 and item_id not in ordered:
            ordered.append(item_id)
    if sorted(ordered) != sorted(non_system_ids):
        raise ValidationError("Invalid reorder payload", field="ids")
    return ordered
