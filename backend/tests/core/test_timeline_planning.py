"""Timeline Planning - verifies the scheduling summary.

Tests cover:
    - requestDate snaps to the first Monday on or after creation
    - not_configured / missing_cards / error / incomplete / complete statuses
    - Approved-stack cards count as done via last_modified
    - earliestExecutionDate and the coordination pending period
"""

from datetime import date, datetime, timezone

from projectcreator.core.deck_defaults import required_next_priority_titles
from projectcreator.core.domain_types import DeckCard, DeckStack
from projectcreator.core.timeline_planning import (
    build_summary, first_monday_on_or_after, parse_board_id, pending_period,
)

CREATED = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)  # a Wednesday
TODAY = date(2026, 3, 30)
REQUIRED = required_next_priority_titles(0)


def _stacks(done_titles=(), approved_titles=(), skip=()):
    cards = []
    for i, title in enumerate(REQUIRED):
        if title in skip:
            continue
        done = datetime(2026, 3, 10 + i, tzinfo=timezone.utc) if title in done_titles else None
        cards.append(DeckCard(id=i + 1, title=title, stack_id=1, order=i, done=done))
    approved = tuple(
        DeckCard(
            id=50 + i, title=title, stack_id=5, order=i,
            last_modified=int(datetime(2026, 3, 25, tzinfo=timezone.utc).timestamp()),
        )
        for i, title in enumerate(approved_titles)
    )
    return [DeckStack(1, "Next priority", 1, tuple(cards)), DeckStack(5, "Approved", 4, approved)]


def _summary(**kwargs):
    defaults = dict(
        created_at=CREATED, project_type=0, preparation_weeks=None,
        board_id=7, stacks=_stacks(), today=TODAY,
    )
    defaults.update(kwargs)
    return build_summary(**defaults)


def test_first_monday():
    assert first_monday_on_or_after(date(2026, 3, 4)) == date(2026, 3, 9)
    assert first_monday_on_or_after(date(2026, 3, 9)) == date(2026, 3, 9)


def test_parse_board_id():
    assert parse_board_id("42") == 42
    assert parse_board_id(None) == 0
    assert parse_board_id("abc") == 0


def test_unknown_type_is_not_configured():
    summary = _summary(project_type=9)
    assert summary["processCompleted"]["status"] == "not_configured"
    assert summary["requestDate"] == "2026-03-09"


def test_no_board_is_missing_cards():
    summary = _summary(board_id=0)
    assert summary["processCompleted"]["status"] == "missing_cards"
    assert summary["processCompleted"]["missingTitles"] == REQUIRED


def test_board_read_failure_is_error():
    summary = _summary(stacks=None, failed=True)
    assert summary["processCompleted"]["status"] == "error"
    assert summary["earliestExecutionDate"] is None


def test_missing_title_reported():
    summary = _summary(stacks=_stacks(skip={"AVP"}))
    assert summary["processCompleted"]["status"] == "missing_cards"
    assert summary["processCompleted"]["missingTitles"] == ["AVP"]


def test_partially_done_is_incomplete():
    summary = _summary(stacks=_stacks(done_titles=set(REQUIRED[:2])))
    process = summary["processCompleted"]
    assert process["status"] == "incomplete"
    assert process["doneCount"] == 2
    assert summary["coordinationPendingPeriod"] == {
        "days": 21, "fromDate": "2026-03-09", "toDate": "2026-03-30", "isFinal": False,
    }


def test_complete_uses_latest_done_date_and_prep_weeks():
    stacks = _stacks(done_titles=set(REQUIRED[:-1]), approved_titles=[REQUIRED[-1]], skip={REQUIRED[-1]})
    summary = _summary(stacks=stacks, preparation_weeks=2)
    process = summary["processCompleted"]
    assert process["status"] == "complete"
    assert process["date"] == "2026-03-25"
    assert summary["earliestExecutionDate"] == "2026-04-08"
    assert summary["coordinationPendingPeriod"]["isFinal"] is True
    assert summary["coordinationPendingPeriod"]["days"] == 16


def test_negative_preparation_weeks_floor_at_zero():
    assert _summary(preparation_weeks=-3)["requiredPreparationWeeks"] == 0


def test_pending_period_never_negative():
    period = pending_period(date(2026, 3, 9), None, date(2026, 3, 1))
    assert period["days"] == 0
    assert period["toDate"] == "2026-03-09"
