"""Deck Template and Webhook Schemas.

Invariants:
    - Deck card webhooks carry the board id and card id of the changed card
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TemplateFromBoard(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    board_id: int = Field(alias="boardId")
    name: str = ""


class DeckCardEvent(BaseModel):
    """Deck card created/updated notification."""
    model_config = ConfigDict(populate_by_name=True)

    event: Literal["card_created", "card_updated"] = "card_updated"
    board_id: int = Field(alias="boardId", gt=0)
    card_id: int = Field(alias="cardId", gt=0)
