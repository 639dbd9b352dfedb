"""Project Service - create-project saga plus project queries and updates.

Invariants:
    - Saga order: organization -> membership check -> plan limit -> group -> board
      (+ default cards) -> shared group folder -> private folders -> whiteboard
      -> database row + private-folder links -> planning timeline seed
    - On any failure: database rollback, then compensating deletes in order
      group folder, private folders, board, group; each compensation failure is
      logged and never masks the original error
    - The plan limit fails when project_count >= max_projects
    - Whiteboard file id must be positive; otherwise the saga fails
    - list_projects() is newest first; members only see projects whose group they belong to

Design Decisions:
    - Compensation state lives in a _SagaState dataclass: every step records what
      it created before the next step can fail
    - Default card seeding is best effort (DeckDefaultCardsService never raises)
    - Folder name uniqueness is checked against one depth-1 listing of each home
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, CreatedFolder, PlanLimits
from projectcreator.core.errors import (
    ErrorContext, PermissionDeniedError, PlanLimitExceededError,
    ProvisioningError, ResourceNotFoundError,
)
from projectcreator.core.gateway_protocols import Platform
from projectcreator.core.naming import (
    PRIVATE_FILES_SUFFIX, SHARED_FILES_SUFFIX, WHITEBOARD_CONTENT,
    board_title, new_group_id, random_board_color, unique_folder_name,
    whiteboard_file_name,
)
from projectcreator.core.timeline_rules import planning_seed_items
from projectcreator.infrastructure.group_folders_gateway import PERMISSION_ALL
from projectcreator.models.private_folder_link import PrivateFolderLink
from projectcreator.models.project import Project
from projectcreator.models.timeline_item import TimelineItem
from projectcreator.services.deck_default_cards import DeckDefaultCardsService
from projectcreator.services.organization_directory import OrganizationDirectory
from projectcreator.services.project_access import (
    assert_can_access, assert_can_manage, find_project_by_board, get_project_or_404,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name", "number", "type", "description",
    "client_name", "client_role", "client_phone", "client_email", "client_address",
    "loc_street", "loc_city", "loc_zip", "external_ref", "status",
)


@dataclass
class ProjectDraft:
    """Validated input of the create operation."""
    name: str
    number: str
    type: int
    members: list[str] = field(default_factory=list)
    description: str = ""
    organization_id: int | None = None
    client_name: str | None = None
    client_role: str | None = None
    client_phone: str | None = None
    client_email: str | None = None
    client_address: str | None = None
    loc_street: str | None = None
    loc_city: str | None = None
    loc_zip: str | None = None
    request_date: str | None = None
    desired_execution_date: str | None = None
    required_preparation_days: int | None = None


@dataclass
class _SagaState:
    gid: str | None = None
    board_id: int = 0
    group_folder_id: int = 0
    folders: list[CreatedFolder] = field(default_factory=list)


class ProjectService:
    """Provisioning and lifecycle of projects."""

    def __init__(self, db: AsyncSession, platform: Platform):
        self.db = db
        self.platform = platform
        self.orgs = OrganizationDirectory(db)

    # ─── Create (saga) ───────────────────────────────────────────

    async def create_project(self, caller: Caller, draft: ProjectDraft) -> Project:
        """Provision group, board, folders and whiteboard, then persist the project."""
        owner = caller.user_id
        state = _SagaState()
        try:
            organization = await self.orgs.resolve_organization_for_create(
                caller, draft.organization_id,
            )
            users = _unique([*draft.members, owner])
            await self.orgs.assert_users_in_organization(users, organization.id)

            limits = await self.orgs.plan_limits(organization.id)
            count = await self.orgs.project_count(organization.id)
            if count >= limits.max_projects:
                raise PlanLimitExceededError(limits.max_projects, count)

            await self._create_group(users, state)
            await self._create_board(draft.name, owner, state)
            await DeckDefaultCardsService(self.platform.deck).seed_for_project_type(
                draft.type, state.board_id,
            )

            shared_name = await self._create_shared_folder(draft.name, owner, state, limits)
            await self._create_private_folders(draft.name, users, state)
            whiteboard_id = await self._create_whiteboard(owner, shared_name, draft.name)

            project = Project(
                name=draft.name,
                number=draft.number,
                type=draft.type,
                description=draft.description,
                owner_id=owner,
                board_id=str(state.board_id),
                project_group_gid=state.gid,
                folder_id=state.group_folder_id,
                folder_path=shared_name,
                white_board_id=str(whiteboard_id),
                organization_id=organization.id,
                client_name=draft.client_name,
                client_role=draft.client_role,
                client_phone=draft.client_phone,
                client_email=draft.client_email,
                client_address=draft.client_address,
                loc_street=draft.loc_street,
                loc_city=draft.loc_city,
                loc_zip=draft.loc_zip,
            )
            project.private_folders = [
                PrivateFolderLink(user_id=f.user_id, folder_id=f.file_id, folder_path=f.path)
                for f in state.folders
            ]
            self.db.add(project)
            await self.db.flush()

            self._seed_planning_items(project.id, draft.required_preparation_days)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Project creation failed, compensating: {e}",
                extra={"user_id": owner, "board_id": state.board_id or None,
                       "group_id": state.gid},
            )
            await self._compensate(state)
            raise

        logger.info(
            f"Project created: {project.name}",
            extra={"project_id": project.id, "board_id": state.board_id, "user_id": owner},
        )
        return project

    async def _create_group(self, users: list[str], state: _SagaState) -> None:
        while True:
            gid = new_group_id()
            if not await self.platform.groups.group_exists(gid):
                break
        await self.platform.groups.create_group(gid)
        state.gid = gid
        for uid in users:
            if await self.platform.users.get_user(uid) is None:
                continue
            await self.platform.groups.add_user(gid, uid)

    async def _create_board(self, name: str, owner: str, state: _SagaState) -> None:
        state.board_id = await self.platform.deck.create_board(
            board_title(name), random_board_color(), owner,
        )
        await self.platform.deck.share_with_group(
            state.board_id, state.gid, edit=True, share=False, manage=False,
        )

    async def _home_names(self, user_id: str) -> set[str]:
        return {entry.name for entry in await self.platform.files.list_folder(user_id, "")}

    async def _create_shared_folder(
        self, name: str, owner: str, state: _SagaState, limits: PlanLimits,
    ) -> str:
        taken = await self._home_names(owner)
        shared_name = unique_folder_name(name, SHARED_FILES_SUFFIX, taken.__contains__)

        folders = self.platform.group_folders
        state.group_folder_id = await folders.create_folder(shared_name)
        await folders.add_group(state.group_folder_id, state.gid)
        if limits.shared_storage_bytes is not None:
            await folders.set_quota(state.group_folder_id, limits.shared_storage_bytes)
        await folders.set_permissions(state.group_folder_id, state.gid, PERMISSION_ALL)
        return shared_name

    async def _create_private_folders(
        self, name: str, users: list[str], state: _SagaState,
    ) -> None:
        for uid in users:
            taken = await self._home_names(uid)
            folder_name = unique_folder_name(name, PRIVATE_FILES_SUFFIX, taken.__contains__)
            entry = await self.platform.files.create_folder(uid, folder_name)
            state.folders.append(CreatedFolder(uid, entry.path, entry.file_id))

    async def _create_whiteboard(self, owner: str, shared_name: str, name: str) -> int:
        path = f"{shared_name}/{whiteboard_file_name(name)}"
        existing = await self.platform.files.stat(owner, path)
        if existing is not None and existing.file_id > 0:
            return existing.file_id
        entry = await self.platform.files.write_text(owner, path, WHITEBOARD_CONTENT)
        if entry.file_id <= 0:
            raise ProvisioningError("Whiteboard file creation failed.", step="whiteboard")
        return entry.file_id

    def _seed_planning_items(self, project_id: int, preparation_days: int | None) -> None:
        for seed in planning_seed_items(date.today(), preparation_days):
            self.db.add(TimelineItem(
                project_id=project_id,
                label=seed.label,
                start_date=seed.start,
                end_date=seed.end,
                color=seed.color,
                order_index=seed.order_index,
                system_key=seed.key,
                item_type=seed.item_type.value,
            ))

    async def _compensate(self, state: _SagaState) -> None:
        if state.group_folder_id > 0:
            try:
                await self.platform.group_folders.remove_folder(state.group_folder_id)
            except Exception as e:
                logger.error(f"Failed to cleanup group folder: {e}")

        for folder in state.folders:
            try:
                await self.platform.files.delete(folder.user_id, folder.path)
            except Exception as e:
                logger.error(
                    f"Failed to cleanup private folder {folder.path}: {e}",
                    extra={"user_id": folder.user_id},
                )

        if state.board_id > 0:
            try:
                await self.platform.deck.delete_board(state.board_id)
            except Exception as e:
                logger.error(f"Failed to cleanup board: {e}", extra={"board_id": state.board_id})

        if state.gid:
            try:
                await self.platform.groups.delete_group(state.gid)
            except Exception as e:
                logger.error(f"Failed to cleanup group: {e}", extra={"group_id": state.gid})

    # ─── Queries ─────────────────────────────────────────────────

    async def get(self, caller: Caller, project_id: int) -> Project:
        project = await get_project_or_404(self.db, project_id)
        await assert_can_access(caller, project, self.platform)
        return project

    async def get_by_board(self, caller: Caller, board_id: int) -> Project:
        project = await find_project_by_board(self.db, board_id)
        if project is None:
            raise ResourceNotFoundError(
                "Project", context=ErrorContext(board_id=board_id),
                message=f"Project not found for board {board_id}",
            )
        await assert_can_access(caller, project, self.platform)
        return project

    async def list_projects(self, caller: Caller) -> list[Project]:
        if caller.is_global_admin:
            result = await self.db.execute(select(Project).order_by(Project.created_at.desc()))
            return list(result.scalars().all())
        if caller.membership is None:
            raise PermissionDeniedError("You are not assigned to an organization")
        if caller.is_org_admin:
            return await self._by_organization(caller.organization_id)
        return await self._for_user(caller.user_id, caller.organization_id)

    async def list_by_user(self, caller: Caller, user_id: str) -> list[Project]:
        if caller.is_global_admin:
            return await self._for_user(user_id, None)
        if caller.membership is None:
            raise PermissionDeniedError("You are not assigned to an organization")
        if not caller.is_org_admin:
            if caller.user_id != user_id:
                raise PermissionDeniedError("Members can only view their own projects")
            return await self._for_user(user_id, caller.organization_id)

        target = await self.orgs.get_membership(user_id)
        if target is None or target.organization_id != caller.organization_id:
            raise ResourceNotFoundError(
                "User", user_id, message="User not found in your organization",
            )
        return await self._for_user(user_id, caller.organization_id)

    def context(self, caller: Caller) -> dict:
        return {
            "userId": caller.user_id,
            "isGlobalAdmin": caller.is_global_admin,
            "organizationRole": caller.membership.role if caller.membership else None,
            "organizationId": caller.organization_id,
        }

    async def _by_organization(self, organization_id: int) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.organization_id == organization_id)
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def _for_user(self, user_id: str, organization_id: int | None) -> list[Project]:
        gids = await self.platform.groups.list_user_groups(user_id)
        if not gids:
            return []
        query = select(Project).where(Project.project_group_gid.in_(gids))
        if organization_id is not None:
            query = query.where(Project.organization_id == organization_id)
        result = await self.db.execute(query.order_by(Project.created_at.desc()))
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────────────

    async def update(self, caller: Caller, project_id: int, changes: dict) -> Project:
        """Apply the provided fields only (None means unchanged)."""
        project = await get_project_or_404(self.db, project_id)
        assert_can_manage(caller, project)
        for name in UPDATABLE_FIELDS:
            value = changes.get(name)
            if value is not None:
                setattr(project, name, value)
        project.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(project)
        return project


def _unique(values: list[str]) -> list[str]:
    out: list[str] = []
    for value in values:
        value = (value or "").strip()
        if value and value not in out:
            out.append(value)
    return out
