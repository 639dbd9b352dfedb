"""Done-Sync Decision - whether a required card's done flag must change.

Invariants:
    - Only required next-priority titles of the project type are tracked
    - Approved stack (order 4) + not done -> MARK_DONE (flag becomes managed)
    - Not approved + managed flag -> CLEAR_DONE (flag cleared)
    - Everything else -> NONE; cards done manually are never cleared
"""

from enum import Enum

from projectcreator.core.deck_defaults import required_next_priority_titles
from projectcreator.core.timeline_planning import APPROVED_DONE_STACK_ORDER


class DoneSyncAction(str, Enum):
    NONE = "none"
    MARK_DONE = "mark_done"
    CLEAR_DONE = "clear_done"


def is_tracked_title(project_type: int | None, title: str) -> bool:
    ptype = project_type if project_type is not None else -1
    return title in required_next_priority_titles(ptype)


def decide_done_sync(stack_order: int | None, is_done: bool, is_managed: bool) -> DoneSyncAction:
    if stack_order is None:
        return DoneSyncAction.NONE
    approved = stack_order == APPROVED_DONE_STACK_ORDER
    if approved and not is_done:
        return DoneSyncAction.MARK_DONE
    if not approved and is_managed:
        return DoneSyncAction.CLEAR_DONE
    return DoneSyncAction.NONE
