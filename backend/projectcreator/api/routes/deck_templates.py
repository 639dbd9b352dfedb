"""Deck Template Routes - permission templates addressed through a board."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_caller, get_platform
from projectcreator.core.domain_types import Caller
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.schemas.deck_template import TemplateFromBoard
from projectcreator.services.deck_template_service import DeckTemplateService

router = APIRouter(prefix="/api/v1/deck-templates", tags=["deck-templates"])


@router.get("")
async def list_templates(
    board_id: int | None = Query(None, alias="boardId"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    service = DeckTemplateService(db, platform)
    if board_id is not None:
        templates = await service.list_for_board(caller, board_id)
    else:
        templates = await service.list_for_user(caller)
    return [t.to_dict() for t in templates]


@router.post("/from-board")
async def create_from_board(
    body: TemplateFromBoard,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    template = await DeckTemplateService(db, platform).create_from_board(
        caller, body.board_id, body.name,
    )
    return template.to_dict()


@router.get("/can-apply")
async def can_apply(
    board_id: int = Query(alias="boardId"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    allowed = await DeckTemplateService(db, platform).can_apply_for_board(caller, board_id)
    return {"canApply": allowed}


@router.get("/{template_id}")
async def get_template(
    template_id: int,
    board_id: int = Query(alias="boardId"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await DeckTemplateService(db, platform).get_for_board(caller, template_id, board_id)


@router.delete("/{template_id}")
async def delete_template(
    template_id: int,
    board_id: int | None = Query(None, alias="boardId"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    await DeckTemplateService(db, platform).delete(caller, template_id, board_id)
    return {"status": "deleted"}
