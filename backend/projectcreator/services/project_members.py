"""Project Members - membership of the project's host group and organization user search.

Invariants:
    - Members = host group users plus the owner; unknown accounts are skipped
    - Sort: owner first, then display name case-insensitively
    - add_member requires the user to be in the project's organization and to exist
    - A user added to the group is removed again when private folder provisioning fails
    - At most one private folder link per (project, user)

Design Decisions:
    - Adding members is allowed for the project owner as well as org/global admins
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, PlatformUser
from projectcreator.core.errors import (
    PermissionDeniedError, ProvisioningError, ResourceNotFoundError, ValidationError,
)
from projectcreator.core.gateway_protocols import Platform
from projectcreator.core.naming import PRIVATE_FILES_SUFFIX, unique_folder_name
from projectcreator.models.private_folder_link import PrivateFolderLink
from projectcreator.models.project import Project
from projectcreator.services.organization_directory import OrganizationDirectory
from projectcreator.services.project_access import (
    assert_can_access, assert_owner_or_manager, find_private_folder_link,
    get_project_or_404,
)

logger = logging.getLogger(__name__)


def format_member(user: PlatformUser, owner_id: str) -> dict:
    return {
        "id": user.uid,
        "displayName": user.display_name or user.uid,
        "email": user.email or "",
        "isOwner": bool(owner_id) and user.uid == owner_id,
    }


class ProjectMembersService:
    """Lists, adds and searches project members."""

    def __init__(self, db: AsyncSession, platform: Platform):
        self.db = db
        self.platform = platform
        self.orgs = OrganizationDirectory(db)

    async def list_members(self, caller: Caller, project_id: int) -> list[dict]:
        project = await get_project_or_404(self.db, project_id)
        await assert_can_access(caller, project, self.platform)

        owner_id = (project.owner_id or "").strip()
        gid = (project.project_group_gid or "").strip()
        member_ids = sorted(set(await self.platform.groups.list_members(gid))) if gid else []
        if owner_id and owner_id not in member_ids:
            member_ids.append(owner_id)

        members = []
        for uid in member_ids:
            user = await self.platform.users.get_user(uid)
            if user is not None:
                members.append(format_member(user, owner_id))
        members.sort(key=lambda m: (not m["isOwner"], m["displayName"].lower()))
        return members

    async def add_member(self, caller: Caller, project_id: int, user_id: str) -> dict:
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("A user ID is required to add a project member.", field="userId")

        project = await get_project_or_404(self.db, project_id)
        await assert_can_access(caller, project, self.platform)
        assert_owner_or_manager(caller, project)

        gid = (project.project_group_gid or "").strip()
        if not gid:
            raise ProvisioningError(
                "This project cannot accept members because the member group is not configured.",
                step="members",
            )

        membership = await self.orgs.get_membership(user_id)
        if membership is None or membership.organization_id != project.organization_id:
            raise PermissionDeniedError("User does not belong to this organization.")

        user = await self.platform.users.get_user(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id, message=f'User "{user_id}" does not exist.')

        already_member = await self.platform.groups.is_in_group(user_id, gid)
        if not already_member:
            await self.platform.groups.add_user(gid, user_id)

        try:
            await self.ensure_private_folder(project, user_id)
        except Exception:
            if not already_member:
                try:
                    await self.platform.groups.remove_user(gid, user_id)
                except Exception as e:
                    logger.error(
                        f"Failed to roll back group membership: {e}",
                        extra={"project_id": project_id, "user_id": user_id},
                    )
            raise

        logger.info(
            "Project member added",
            extra={"project_id": project.id, "user_id": user_id},
        )
        return {
            "added": not already_member,
            "alreadyMember": already_member,
            "member": format_member(user, (project.owner_id or "").strip()),
        }

    async def ensure_private_folder(self, project: Project, user_id: str) -> None:
        project_id = project.id
        if await find_private_folder_link(self.db, project_id, user_id) is not None:
            return

        name = (project.name or "").strip() or "Project"
        try:
            taken = {e.name for e in await self.platform.files.list_folder(user_id, "")}
            folder_name = unique_folder_name(name, PRIVATE_FILES_SUFFIX, taken.__contains__)
            entry = await self.platform.files.create_folder(user_id, folder_name)
            self.db.add(PrivateFolderLink(
                project_id=project_id, user_id=user_id,
                folder_id=entry.file_id, folder_path=entry.path,
            ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Private folder provisioning failed: {e}",
                extra={"project_id": project_id, "user_id": user_id},
            )
            raise ProvisioningError(
                "Unable to provision private files for invited member.", step="private_folder",
            )

    async def search_users(
        self,
        caller: Caller,
        search: str,
        organization_id: int | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> list[dict]:
        search = (search or "").strip()
        if not search:
            return []
        organization = await self.orgs.resolve_organization_for_create(caller, organization_id)

        users = []
        for uid in await self.orgs.search_members(organization.id, search, limit, offset):
            user = await self.platform.users.get_user(uid)
            if user is None:
                continue
            display_name = user.display_name or uid
            users.append({
                "id": uid,
                "user": uid,
                "label": display_name,
                "displayName": display_name,
                "subname": user.email or "",
            })
        return users
