"""Webhook Routes - Deck card events that drive the done-sync.

Invariants:
    - Authenticated by the shared secret header, not by the user header
    - Unknown boards are acknowledged with changed=0
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_platform, verify_webhook_secret
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.schemas.deck_template import DeckCardEvent
from projectcreator.services.deck_done_sync import DeckDoneSyncService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/webhooks", tags=["webhooks"],
    dependencies=[Depends(verify_webhook_secret)],
)


@router.post("/deck/cards")
async def deck_card_event(
    body: DeckCardEvent,
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    changed = await DeckDoneSyncService(db, platform.deck).sync_card_event(
        body.board_id, body.card_id,
    )
    logger.info(
        f"Deck {body.event} processed",
        extra={"board_id": body.board_id, "card_id": body.card_id},
    )
    return {"changed": changed}
