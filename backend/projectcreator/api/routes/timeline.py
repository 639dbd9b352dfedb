"""Timeline Routes - Gantt items, scheduling summary and done-sync of a project.

Invariants:
    - Every route requires read access to the project; timeline edits need nothing more
    - /summary, /sync-done and /reorder are declared before /{item_id}
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_accessible_project, get_platform
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.models.project import Project
from projectcreator.schemas.timeline import (
    TimelineItemCreate, TimelineItemUpdate, TimelineReorder,
)
from projectcreator.services.timeline_service import TimelineService

router = APIRouter(prefix="/api/v1/projects/{project_id}/timeline", tags=["timeline"])


@router.get("")
async def list_items(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await TimelineService(db, platform).index(project)


@router.get("/summary")
async def get_summary(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await TimelineService(db, platform).summary(project)


@router.post("/sync-done")
async def sync_done(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await TimelineService(db, platform).sync_done(project)


@router.put("/reorder")
async def reorder_items(
    body: TimelineReorder,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await TimelineService(db, platform).reorder(project, body.ids)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(
    body: TimelineItemCreate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    item = await TimelineService(db, platform).create(
        project, body.label, body.start_date, body.end_date, body.color, body.item_type,
    )
    return item.to_dict()


@router.put("/{item_id}")
async def update_item(
    item_id: int,
    body: TimelineItemUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    item = await TimelineService(db, platform).update(
        project, item_id,
        label=body.label,
        start_date=body.start_date,
        end_date=body.end_date,
        color=body.color,
        item_type=body.item_type,
        order_index=body.order_index,
    )
    return item.to_dict()


@router.delete("/{item_id}")
async def destroy_item(
    item_id: int,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await TimelineService(db, platform).destroy(project, item_id)
