"""Deck Default Cards - seeds the project-type card catalogue onto a fresh board.

Invariants:
    - Best effort: no exception ever escapes seed_for_project_type
    - Board is switched to card_policy mode before any card is created
    - Next-priority cards go to the stack with order 1, process steps to order 0
    - Seeding is skipped (warning) when either stack is missing
    - Card order == index in the catalogue; per-card failures skip only that card

Design Decisions:
    - The "Belangrijk" label is reused when present, created otherwise, and looked up
      again if creation races with another writer
"""

import logging

from projectcreator.core.deck_defaults import (
    CardPolicy, CardTemplate, IMPORTANT_LABEL_COLOR, IMPORTANT_LABEL_TITLE,
    NEXT_PRIORITY_STACK_ORDER, PROCESS_STEPS_STACK_ORDER,
    card_policies, next_priority_cards, process_step_cards,
)
from projectcreator.core.domain_types import DeckStack
from projectcreator.core.gateway_protocols import DeckBoards

logger = logging.getLogger(__name__)


class DeckDefaultCardsService:
    """Populates new project boards with their default cards."""

    def __init__(self, deck: DeckBoards):
        self.deck = deck

    async def seed_for_project_type(self, project_type: int, board_id: int) -> None:
        next_priority = next_priority_cards(project_type)
        process_steps = process_step_cards(project_type)
        if (not next_priority and not process_steps) or board_id <= 0:
            return

        try:
            await self.deck.enable_card_policy_mode(board_id)

            stacks = await self.deck.list_stacks(board_id)
            process_stack = _stack_by_order(stacks, PROCESS_STEPS_STACK_ORDER)
            priority_stack = _stack_by_order(stacks, NEXT_PRIORITY_STACK_ORDER)
            if process_stack is None or priority_stack is None:
                logger.warning(
                    "Deck default card seeding skipped: missing default stacks",
                    extra={"board_id": board_id},
                )
                return

            label_id = await self._ensure_important_label(board_id)
            policies = card_policies(project_type)

            await self._seed_stack(board_id, priority_stack, next_priority, label_id, policies)
            await self._seed_stack(board_id, process_stack, process_steps, label_id, policies)
        except Exception as e:
            logger.error(
                f"Deck default card seeding failed: {e}",
                extra={"board_id": board_id}, exc_info=True,
            )

    async def _ensure_important_label(self, board_id: int) -> int | None:
        label_id = await self._find_label(board_id)
        if label_id is not None:
            return label_id
        try:
            created = await self.deck.create_label(
                board_id, IMPORTANT_LABEL_TITLE, IMPORTANT_LABEL_COLOR,
            )
            if created > 0:
                return created
        except Exception as e:
            logger.info(f"Important label creation failed, re-reading labels: {e}")
        try:
            return await self._find_label(board_id)
        except Exception as e:
            logger.warning(
                f"Unable to create/find important label; important cards will be unlabelled: {e}",
                extra={"board_id": board_id},
            )
            return None

    async def _find_label(self, board_id: int) -> int | None:
        for label in await self.deck.list_labels(board_id):
            if label.title == IMPORTANT_LABEL_TITLE:
                return label.id
        return None

    async def _seed_stack(
        self,
        board_id: int,
        stack: DeckStack,
        cards: tuple[CardTemplate, ...],
        label_id: int | None,
        policies: dict[str, CardPolicy],
    ) -> None:
        for index, template in enumerate(cards):
            try:
                card_id = await self.deck.create_card(board_id, stack.id, template.title, index)
                policy = policies.get(template.title)
                if policy is not None:
                    await self.deck.set_card_policy(
                        board_id, card_id, list(policy.move), list(policy.approve),
                    )
                if label_id is not None and template.important:
                    await self.deck.assign_label(board_id, stack.id, card_id, label_id)
            except Exception as e:
                logger.warning(
                    f"Deck default card seeding: unable to create/label card '{template.title}': {e}",
                    extra={"board_id": board_id},
                )


def _stack_by_order(stacks: list[DeckStack], order: int) -> DeckStack | None:
    for stack in stacks:
        if stack.order == order:
            return stack
    return None
