"""Timeline Planning Service - reads the project board and builds the scheduling summary.

Invariants:
    - The board is read only when the project type has required cards and a board id
    - A board read failure is logged and reported as status "error", never raised
"""

import logging
from datetime import date

from projectcreator.core.deck_defaults import required_next_priority_titles
from projectcreator.core.domain_types import DeckStack
from projectcreator.core.gateway_protocols import DeckBoards
from projectcreator.core.timeline_planning import build_summary, parse_board_id
from projectcreator.models.project import Project

logger = logging.getLogger(__name__)


class TimelinePlanningService:
    """IO wrapper around core.timeline_planning.build_summary."""

    def __init__(self, deck: DeckBoards):
        self.deck = deck

    async def build_summary(self, project: Project, today: date | None = None) -> dict:
        board_id = parse_board_id(project.board_id)
        project_type = project.type if project.type is not None else -1
        stacks: list[DeckStack] | None = None
        failed = False

        if required_next_priority_titles(project_type) and board_id > 0:
            try:
                stacks = await self.deck.list_stacks(board_id)
            except Exception as e:
                failed = True
                logger.error(
                    f"Timeline planning: failed to read board: {e}",
                    extra={"project_id": project.id, "board_id": board_id},
                )

        return build_summary(
            created_at=project.created_at,
            project_type=project.type,
            preparation_weeks=project.required_preparation_weeks,
            board_id=board_id,
            stacks=stacks,
            today=today or date.today(),
            failed=failed,
        )
