"""User Routes - organization user search and projects of a user."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_caller, get_platform
from projectcreator.core.domain_types import Caller
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.services.project_members import ProjectMembersService
from projectcreator.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/search")
async def search_users(
    search: str = "",
    organization_id: int | None = Query(None, alias="organizationId"),
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    users = await ProjectMembersService(db, platform).search_users(
        caller, search, organization_id, limit, offset,
    )
    return {"users": users}


@router.get("/{user_id}/projects")
async def list_user_projects(
    user_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    projects = await ProjectService(db, platform).list_by_user(caller, user_id)
    return [p.to_dict() for p in projects]
