"""Deck Done-Sync Service - mirrors the approved stack onto the done flag of required cards.

Invariants:
    - Only required next-priority titles of the project's type are touched
    - MARK_DONE sets done=now and managed_done=1; CLEAR_DONE sets done=None and managed_done=0
    - A card done by hand (no managed flag) is never cleared
    - The flag write and the Deck write share a savepoint: if either fails both are undone
    - Per-card Deck errors and flag conflicts are logged and count as no change;
      board read failures and other database errors propagate

Design Decisions:
    - Stack order comes from the same board snapshot as the card (one list_stacks call)
    - One commit per sync run, after all card updates
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.deck_defaults import required_next_priority_titles
from projectcreator.core.domain_types import DeckCard, DeckStack
from projectcreator.core.done_sync import DoneSyncAction, decide_done_sync, is_tracked_title
from projectcreator.core.errors import PlatformError
from projectcreator.core.gateway_protocols import DeckBoards
from projectcreator.core.timeline_planning import parse_board_id
from projectcreator.models.deck_done_sync import DeckDoneSync
from projectcreator.models.project import Project
from projectcreator.services.project_access import find_project_by_board

logger = logging.getLogger(__name__)


class DeckDoneSyncService:
    """Keeps card done dates in line with the approved stack."""

    def __init__(self, db: AsyncSession, deck: DeckBoards):
        self.db = db
        self.deck = deck

    async def sync_project(self, project: Project) -> int:
        """Sync every required card on the project's board. Returns the number changed."""
        project_type = project.type if project.type is not None else -1
        required = required_next_priority_titles(project_type)
        board_id = parse_board_id(project.board_id)
        if not project.id or not required or board_id <= 0:
            return 0

        stacks = await self.deck.list_stacks(board_id)
        changed = 0
        for stack in stacks:
            for card in stack.cards:
                if card.archived or card.title not in required:
                    continue
                changed += await self._sync_card(project, board_id, stack, card)
        if changed:
            await self.db.commit()
        return changed

    async def sync_card_event(self, board_id: int, card_id: int) -> int:
        """Handle a Deck card created/updated event."""
        if board_id <= 0 or card_id <= 0:
            return 0
        project = await find_project_by_board(self.db, board_id)
        if project is None:
            return 0

        stacks = await self.deck.list_stacks(board_id)
        for stack in stacks:
            for card in stack.cards:
                if card.id == card_id:
                    changed = await self._sync_card(project, board_id, stack, card)
                    if changed:
                        await self.db.commit()
                    return changed
        return 0

    async def _sync_card(
        self, project: Project, board_id: int, stack: DeckStack, card: DeckCard,
    ) -> int:
        if card.id <= 0 or stack.id <= 0 or not is_tracked_title(project.type, card.title):
            return 0
        project_id = project.id
        flag = await self._flag(project_id, card.id)
        managed = flag is not None and bool(flag.managed_done)
        action = decide_done_sync(stack.order, card.done is not None, managed)
        if action is DoneSyncAction.NONE:
            return 0

        mark = action is DoneSyncAction.MARK_DONE
        try:
            # flag first: a Deck failure rolls it back, a flag conflict leaves Deck untouched
            async with self.db.begin_nested():
                await self._set_flag(project_id, card.id, flag, mark)
                await self.deck.set_card_done(
                    board_id, stack.id, card.id, datetime.now(timezone.utc) if mark else None,
                )
        except (PlatformError, IntegrityError) as e:
            logger.warning(
                f"Deck done-sync failed for card '{card.title}': {e}",
                extra={"project_id": project_id, "board_id": board_id, "card_id": card.id},
            )
            return 0
        return 1

    async def _flag(self, project_id: int, card_id: int) -> DeckDoneSync | None:
        result = await self.db.execute(
            select(DeckDoneSync)
            .where(DeckDoneSync.project_id == project_id)
            .where(DeckDoneSync.card_id == card_id)
        )
        return result.scalar_one_or_none()

    async def _set_flag(
        self, project_id: int, card_id: int, flag: DeckDoneSync | None, managed: bool,
    ) -> None:
        now = datetime.now(timezone.utc)
        if flag is None:
            self.db.add(DeckDoneSync(
                project_id=project_id, card_id=card_id, managed_done=int(managed),
                created_at=now, updated_at=now,
            ))
        else:
            flag.managed_done = int(managed)
            flag.updated_at = now
        await self.db.flush()
