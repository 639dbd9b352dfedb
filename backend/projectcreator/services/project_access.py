"""Project Access - who may read or manage a project.

Invariants:
    - Global admin -> always allowed
    - No organization membership -> 403
    - Project in another organization -> 404 (existence is not leaked)
    - Org admin -> allowed to read and manage
    - Member -> may read only when in the project's host group, else 404; never manage
    - Caller is resolved once per request (one membership read, one admin check)

Design Decisions:
    - Functions over a class: no state beyond the injected db/platform
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller
from projectcreator.core.errors import (
    ErrorContext, PermissionDeniedError, ResourceNotFoundError,
)
from projectcreator.core.gateway_protocols import Platform
from projectcreator.models.private_folder_link import PrivateFolderLink
from projectcreator.models.project import Project
from projectcreator.services.organization_directory import OrganizationDirectory


async def resolve_caller(db: AsyncSession, platform: Platform, user_id: str) -> Caller:
    return Caller(
        user_id=user_id,
        is_global_admin=await platform.is_global_admin(user_id),
        membership=await OrganizationDirectory(db).get_membership(user_id),
    )


async def get_project_or_404(db: AsyncSession, project_id: int) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise ResourceNotFoundError(
            "Project", project_id,
            context=ErrorContext(project_id=project_id),
            message=f"Project with ID {project_id} not found",
        )
    return project


async def find_project_by_board(db: AsyncSession, board_id: int) -> Project | None:
    result = await db.execute(
        select(Project).where(Project.board_id == str(board_id)).limit(1),
    )
    return result.scalar_one_or_none()


async def find_private_folder_link(
    db: AsyncSession, project_id: int, user_id: str,
) -> PrivateFolderLink | None:
    result = await db.execute(
        select(PrivateFolderLink)
        .where(PrivateFolderLink.project_id == project_id)
        .where(PrivateFolderLink.user_id == user_id)
    )
    return result.scalar_one_or_none()


def _hidden(project: Project) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Project", project.id, context=ErrorContext(project_id=project.id),
        message="Project not found",
    )


async def assert_can_access(caller: Caller, project: Project, platform: Platform) -> None:
    """Read access: group members of the project, org admins, global admins."""
    if caller.is_global_admin:
        return
    if caller.membership is None:
        raise PermissionDeniedError("You are not assigned to an organization")
    if caller.organization_id != project.organization_id:
        raise _hidden(project)
    if caller.is_org_admin:
        return
    gid = (project.project_group_gid or "").strip()
    if not gid or not await platform.groups.is_in_group(caller.user_id, gid):
        raise _hidden(project)


def assert_can_manage(caller: Caller, project: Project) -> None:
    """Write access to project details: org admins of the project's org, global admins."""
    if caller.is_global_admin:
        return
    if not caller.is_org_admin:
        raise PermissionDeniedError("Only organization admins can manage projects")
    if caller.organization_id != project.organization_id:
        raise _hidden(project)


def assert_owner_or_manager(caller: Caller, project: Project) -> None:
    """Project owner, or anyone assert_can_manage admits."""
    if caller.user_id and caller.user_id == project.owner_id:
        return
    assert_can_manage(caller, project)
