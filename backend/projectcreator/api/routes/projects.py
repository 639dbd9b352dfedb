"""Project Routes - create, list, read and update projects, questionnaire and members.

Invariants:
    - Every route resolves the caller from the trusted header (401 without it)
    - Static paths (/list, /context, /board/...) are declared before /{project_id}
"""

import logging

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_accessible_project, get_caller, get_platform
from projectcreator.core.domain_types import Caller
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.models.project import Project
from projectcreator.schemas.project import MemberAdd, ProjectCreate, ProjectUpdate
from projectcreator.services.card_visibility_service import (
    card_visibility_state, update_card_visibility,
)
from projectcreator.services.project_access import assert_owner_or_manager
from projectcreator.services.project_members import ProjectMembersService
from projectcreator.services.project_service import ProjectService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    """Provision group, board, folders and whiteboard for a new project."""
    project = await ProjectService(db, platform).create_project(caller, body.to_draft())
    return {"message": "Project created successfully", "projectId": project.id}


@router.get("/list")
async def list_projects(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    projects = await ProjectService(db, platform).list_projects(caller)
    return [p.to_dict() for p in projects]


@router.get("/context")
async def get_context(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return ProjectService(db, platform).context(caller)


@router.get("/board/{board_id}")
async def get_project_by_board(
    board_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    project = await ProjectService(db, platform).get_by_board(caller, board_id)
    return project.to_dict()


@router.get("/{project_id}")
async def get_project(project: Project = Depends(get_accessible_project)):
    return project.to_dict()


@router.put("/{project_id}")
async def update_project(
    project_id: int,
    body: ProjectUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    project = await ProjectService(db, platform).update(
        caller, project_id, body.model_dump(exclude_none=True),
    )
    return project.to_dict()


# ─── Card visibility ────────────────────────────────────────────

@router.get("/{project_id}/card-visibility")
async def get_card_visibility(project: Project = Depends(get_accessible_project)):
    return card_visibility_state(project)


@router.put("/{project_id}/card-visibility")
async def put_card_visibility(
    payload: dict = Body(default_factory=dict),
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    assert_owner_or_manager(caller, project)
    return await update_card_visibility(db, project, payload)


# ─── Members ────────────────────────────────────────────────────

@router.get("/{project_id}/members")
async def list_members(
    project_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    members = await ProjectMembersService(db, platform).list_members(caller, project_id)
    return {"members": members}


@router.post("/{project_id}/members")
async def add_member(
    project_id: int,
    body: MemberAdd,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await ProjectMembersService(db, platform).add_member(caller, project_id, body.user_id)
