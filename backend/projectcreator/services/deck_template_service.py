"""Deck Permission Templates - snapshot a board's card-policy setup for reuse.

Invariants:
    - Templates belong to exactly one organization; names are unique per organization
    - list/create: any project member (group member, owner, org admin, global admin)
    - get/apply: project owner, org admin, global admin only
    - delete: global admin, org admin, template creator, or the owner of a project
      in the template's organization (board context required)
    - create_from_board requires the board to be in card_policy mode

Design Decisions:
    - Payload is JSON version 1: createdFrom, roles, defaults, stacks, cards
    - Stacks and cards come from the Deck REST API (archived cards skipped)
    - A unique-constraint race on insert maps to ConflictError
"""

import json
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, PermissionMode
from projectcreator.core.errors import (
    ConflictError, ErrorCategory, ErrorContext, PermissionDeniedError, PlatformError,
    ProjectCreatorError, ResourceNotFoundError, ValidationError,
)
from projectcreator.core.gateway_protocols import Platform
from projectcreator.models.deck_permission_template import DeckPermissionTemplate
from projectcreator.models.project import Project
from projectcreator.services.project_access import find_project_by_board

logger = logging.getLogger(__name__)

TEMPLATE_VERSION = 1
POLICY_KEYS = ("move", "approve", "view")


def _unique(values) -> list[str]:
    out: list[str] = []
    for value in values or []:
        value = str(value)
        if value not in out:
            out.append(value)
    return out


def _policy(raw: dict | None) -> dict:
    raw = raw or {}
    return {key: _unique(raw.get(key)) for key in POLICY_KEYS}


def _board_id(board_id: int | None) -> int:
    if board_id is None or board_id <= 0:
        raise ValidationError("Invalid board", field="boardId")
    return board_id


def _template_id(template_id: int) -> int:
    if template_id <= 0:
        raise ValidationError("Invalid template", field="templateId")
    return template_id


def _template_not_found(template_id: int) -> ResourceNotFoundError:
    return ResourceNotFoundError("Template", template_id, message="Template not found")


class DeckTemplateService:
    """Permission templates scoped to organizations, addressed through a board."""

    def __init__(self, db: AsyncSession, platform: Platform):
        self.db = db
        self.platform = platform

    # ─── Board context ───────────────────────────────────────────

    async def _project_for_board(self, board_id: int) -> Project:
        project = await find_project_by_board(self.db, board_id)
        if project is None or not project.organization_id:
            raise ResourceNotFoundError(
                "Project", context=ErrorContext(board_id=board_id),
                message="This board is not linked to a project",
            )
        return project

    @staticmethod
    def _is_manager(caller: Caller, organization_id: int) -> bool:
        if caller.is_global_admin:
            return True
        if caller.is_org_admin and caller.organization_id == organization_id:
            return True
        return False

    @staticmethod
    def _is_owner(caller: Caller, project: Project) -> bool:
        owner_id = (project.owner_id or "").strip()
        return bool(owner_id) and owner_id == caller.user_id

    async def _assert_can_access(self, caller: Caller, board_id: int) -> Project:
        project = await self._project_for_board(board_id)
        if self._is_manager(caller, project.organization_id) or self._is_owner(caller, project):
            return project
        gid = (project.project_group_gid or "").strip()
        if gid and await self.platform.groups.is_in_group(caller.user_id, gid):
            return project
        raise PermissionDeniedError("You do not have access to this project")

    async def _assert_can_apply(self, caller: Caller, board_id: int) -> Project:
        project = await self._project_for_board(board_id)
        if self._is_manager(caller, project.organization_id) or self._is_owner(caller, project):
            return project
        raise PermissionDeniedError("You do not have permission to apply templates for this board")

    # ─── Queries ─────────────────────────────────────────────────

    async def _by_organization(self, organization_id: int) -> list[DeckPermissionTemplate]:
        result = await self.db.execute(
            select(DeckPermissionTemplate)
            .where(DeckPermissionTemplate.organization_id == organization_id)
            .order_by(DeckPermissionTemplate.name)
        )
        return list(result.scalars().all())

    async def list_for_user(self, caller: Caller) -> list[DeckPermissionTemplate]:
        # global admins have no implicit organization
        if caller.is_global_admin or not caller.organization_id:
            return []
        return await self._by_organization(caller.organization_id)

    async def list_for_board(self, caller: Caller, board_id: int) -> list[DeckPermissionTemplate]:
        project = await self._assert_can_access(caller, _board_id(board_id))
        return await self._by_organization(project.organization_id)

    async def can_apply_for_board(self, caller: Caller, board_id: int) -> bool:
        if board_id <= 0:
            return False
        project = await find_project_by_board(self.db, board_id)
        if project is None or not project.organization_id:
            return False
        return self._is_manager(caller, project.organization_id) or self._is_owner(caller, project)

    async def get_for_board(self, caller: Caller, template_id: int, board_id: int) -> dict:
        _template_id(template_id)
        project = await self._assert_can_apply(caller, _board_id(board_id))

        template = await self.db.get(DeckPermissionTemplate, template_id)
        if template is None or template.organization_id != project.organization_id:
            raise _template_not_found(template_id)

        try:
            payload = json.loads(template.template_json or "")
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            raise ProjectCreatorError(
                "Invalid template payload", "INVALID_TEMPLATE", ErrorCategory.INTERNAL,
            )
        return {**template.to_dict(), "payload": payload}

    # ─── Writes ──────────────────────────────────────────────────

    async def create_from_board(
        self, caller: Caller, board_id: int, name: str,
    ) -> DeckPermissionTemplate:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Template name is required", field="name")
        project = await self._assert_can_access(caller, _board_id(board_id))
        organization_id = project.organization_id

        existing = await self.db.execute(
            select(DeckPermissionTemplate.id)
            .where(DeckPermissionTemplate.organization_id == organization_id)
            .where(DeckPermissionTemplate.name == name)
        )
        if existing.first() is not None:
            raise ValidationError("A template with this name already exists", field="name")

        payload = await self._snapshot(board_id)
        template = DeckPermissionTemplate(
            organization_id=organization_id,
            name=name,
            created_by=caller.user_id,
            template_json=json.dumps(payload, ensure_ascii=False),
            updated_at=None,
        )
        self.db.add(template)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A template with this name already exists")
        await self.db.refresh(template)
        logger.info(
            "Deck permission template created",
            extra={"board_id": board_id, "user_id": caller.user_id},
        )
        return template

    async def _snapshot(self, board_id: int) -> dict:
        deck = self.platform.deck
        try:
            state = await deck.get_policy_state(board_id)
            explicit = await deck.get_explicit_card_policies(board_id)
        except PlatformError as e:
            if e.status_code == 403:
                raise PermissionDeniedError(
                    "You do not have permission to manage this board",
                    context=ErrorContext(board_id=board_id),
                )
            raise

        mode = str((state.get("settings") or {}).get("permissionMode") or "")
        if mode != PermissionMode.CARD_POLICY.value:
            raise ValidationError("Granular permissions are not enabled on this board")

        roles = [
            {
                "roleKey": str(role.get("roleKey") or ""),
                "name": str(role.get("name") or ""),
                "color": str(role.get("color") or ""),
            }
            for role in state.get("roles") or []
        ]
        stacks = await deck.list_stacks(board_id)
        cards = []
        for stack in stacks:
            for card in sorted(stack.cards, key=lambda c: c.order):
                if card.id <= 0 or not card.title or card.archived:
                    continue
                cards.append({
                    "title": card.title,
                    "description": card.description or "",
                    "stackTitle": stack.title,
                    "stackOrder": stack.order,
                    "order": card.order,
                    "policy": _policy(explicit.get(card.id)),
                })

        return {
            "version": TEMPLATE_VERSION,
            "createdFrom": {"boardId": board_id, "permissionMode": mode or PermissionMode.LEGACY.value},
            "roles": [r for r in roles if r["roleKey"]],
            "defaults": _policy(state.get("defaultRoleKeys")),
            "stacks": [{"title": s.title, "order": s.order} for s in stacks if s.title],
            "cards": cards,
        }

    async def delete(self, caller: Caller, template_id: int, board_id: int | None = None) -> None:
        _template_id(template_id)
        template = await self.db.get(DeckPermissionTemplate, template_id)
        if template is None:
            raise _template_not_found(template_id)

        allowed = (
            self._is_manager(caller, template.organization_id)
            or (template.created_by and template.created_by == caller.user_id)
        )
        if not allowed and board_id is not None:
            project = await self._project_for_board(_board_id(board_id))
            if project.organization_id != template.organization_id:
                raise _template_not_found(template_id)
            allowed = self._is_owner(caller, project)
        if not allowed:
            raise PermissionDeniedError("You do not have permission to delete this template")

        await self.db.delete(template)
        await self.db.commit()
        logger.info(
            "Deck permission template deleted",
            extra={"user_id": caller.user_id},
        )
