"""Timeline Planning - pure scheduling summary computed from a project and its board.

Invariants:
    - requestDate is the first Monday on or after the project's creation date
    - requiredPreparationWeeks >= 0 (project value, else the type default)
    - A required card counts as done when it has a done date, or sits in the
      approved stack (order 4) with a positive last-modified timestamp
    - earliestExecutionDate is set only when status == complete
    - coordinationPendingPeriod.days >= 0 and toDate >= fromDate

Design Decisions:
    - Board snapshot (list[DeckStack]) passed in; the IO wrapper lives in
      services/timeline_planning_service.py and reports read failures via failed=True
    - `today` is a parameter so summaries are reproducible in tests
"""

from datetime import date, datetime, timedelta, timezone

from projectcreator.core.deck_defaults import (
    default_preparation_weeks, required_next_priority_titles,
)
from projectcreator.core.domain_types import DeckStack, ProcessStatus

APPROVED_DONE_STACK_ORDER = 4


def first_monday_on_or_after(day: date) -> date:
    return day + timedelta(days=(7 - day.weekday()) % 7)


def parse_board_id(value: object) -> int:
    """Positive board id from the stored string, or 0."""
    text = str(value if value is not None else "").strip()
    return int(text) if text.isdigit() else 0


def card_done_date(done: datetime | None, last_modified: int, stack_order: int) -> date | None:
    if done is not None:
        return done.date()
    if stack_order == APPROVED_DONE_STACK_ORDER and last_modified > 0:
        return datetime.fromtimestamp(last_modified, tz=timezone.utc).date()
    return None


def collect_done_by_title(
    stacks: list[DeckStack], titles: list[str],
) -> dict[str, date | None]:
    """Latest done date per wanted title; a present-but-open title maps to None."""
    wanted = set(titles)
    out: dict[str, date | None] = {}
    for stack in stacks:
        for card in stack.cards:
            if card.archived or card.title not in wanted:
                continue
            done = card_done_date(card.done, card.last_modified, stack.order)
            if card.title not in out:
                out[card.title] = done
            elif done is not None and (out[card.title] is None or done > out[card.title]):
                out[card.title] = done
    return out


def pending_period(request_date: date, completed: date | None, today: date) -> dict:
    end = completed if completed is not None else today
    if end < request_date:
        end = request_date
    return {
        "days": (end - request_date).days,
        "fromDate": request_date.isoformat(),
        "toDate": end.isoformat(),
        "isFinal": completed is not None,
    }


def _process(
    status: ProcessStatus,
    total: int,
    done_count: int = 0,
    missing: list[str] | None = None,
    completed: date | None = None,
) -> dict:
    return {
        "status": status.value,
        "date": completed.isoformat() if completed else None,
        "doneCount": done_count,
        "totalRequired": total,
        "missingTitles": missing or [],
    }


def build_summary(
    *,
    created_at: datetime | None,
    project_type: int | None,
    preparation_weeks: int | None,
    board_id: int,
    stacks: list[DeckStack] | None,
    today: date,
    failed: bool = False,
) -> dict:
    """Scheduling summary for one project.

    `stacks` is the board snapshot (None when it was not read); `failed`
    marks a board read error and yields status "error".
    """
    request_date = first_monday_on_or_after(created_at.date() if created_at else today)
    ptype = project_type if project_type is not None else -1
    weeks = preparation_weeks if preparation_weeks is not None else default_preparation_weeks(ptype)
    weeks = max(0, int(weeks))
    required = required_next_priority_titles(ptype)
    total = len(required)

    def result(process: dict, completed: date | None = None, earliest: date | None = None) -> dict:
        return {
            "requestDate": request_date.isoformat(),
            "requiredPreparationWeeks": weeks,
            "processCompleted": process,
            "earliestExecutionDate": earliest.isoformat() if earliest else None,
            "coordinationPendingPeriod": pending_period(request_date, completed, today),
        }

    if not required:
        return result(_process(ProcessStatus.NOT_CONFIGURED, 0))
    if board_id <= 0:
        return result(_process(ProcessStatus.MISSING_CARDS, total, missing=list(required)))
    if failed or stacks is None:
        return result(_process(ProcessStatus.ERROR, total))

    by_title = collect_done_by_title(stacks, required)
    missing = [t for t in required if t not in by_title]
    done_dates = [by_title[t] for t in required if by_title.get(t) is not None]
    done_count = len(done_dates)

    if missing:
        return result(_process(ProcessStatus.MISSING_CARDS, total, done_count, missing))
    if done_count != total:
        return result(_process(ProcessStatus.INCOMPLETE, total, done_count))

    completed = max(done_dates)
    earliest = completed + timedelta(days=7 * weeks)
    return result(
        _process(ProcessStatus.COMPLETE, total, done_count, completed=completed),
        completed=completed,
        earliest=earliest,
    )
