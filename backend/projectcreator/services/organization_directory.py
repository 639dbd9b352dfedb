"""Organization Directory - tenant membership, plan limits and member search.

Invariants:
    - A user has at most one membership (organization_members.user_uid is unique)
    - Effective max_projects = active subscription override, else its plan's value
    - No active subscription -> limit 0 (creation is refused with the plan-limit message)
    - search_members matches user ids case-insensitively, ordered by uid;
      % and _ in the search text match literally

Design Decisions:
    - Read-only over the organization tables; writes belong to the companion app
    - resolve_organization_for_create keeps the historical messages verbatim
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, Membership, PlanLimits
from projectcreator.core.errors import OrganizationError, ValidationError
from projectcreator.models.organization import (
    Organization, OrganizationMember, Plan, Subscription,
)
from projectcreator.models.project import Project

logger = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class OrganizationDirectory:
    """Reads organization, membership and plan records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_membership(self, user_id: str) -> Membership | None:
        result = await self.db.execute(
            select(OrganizationMember).where(OrganizationMember.user_uid == user_id),
        )
        member = result.scalar_one_or_none()
        if member is None:
            return None
        return Membership(organization_id=member.organization_id, role=member.role)

    async def get_organization(self, organization_id: int) -> Organization | None:
        return await self.db.get(Organization, organization_id)

    async def resolve_organization_for_create(
        self, caller: Caller, organization_id: int | None,
    ) -> Organization:
        """Organization a new project (or user search) is scoped to."""
        if caller.is_global_admin:
            if organization_id is None:
                raise OrganizationError("An organization ID is required for admins.")
            organization = await self.get_organization(organization_id)
            if organization is None:
                raise OrganizationError("The selected organization does not exist.")
            return organization

        if caller.membership is None:
            raise OrganizationError("No organization is assigned to your user account.")
        resolved = caller.membership.organization_id
        if organization_id is not None and organization_id != resolved:
            raise OrganizationError("You can only manage projects for your own organization.")

        organization = await self.get_organization(resolved)
        if organization is None:
            raise OrganizationError("No organization is assigned to your user account.")
        return organization

    async def assert_users_in_organization(self, user_ids: list[str], organization_id: int) -> None:
        for user_id in user_ids:
            membership = await self.get_membership(user_id)
            if membership is None or membership.organization_id != organization_id:
                raise ValidationError(
                    f'User "{user_id}" does not belong to the selected organization.',
                    field="members",
                )

    async def plan_limits(self, organization_id: int) -> PlanLimits:
        now = datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Subscription, Plan)
            .join(Plan, Plan.id == Subscription.plan_id)
            .where(Subscription.organization_id == organization_id)
            .where(Subscription.status == "active")
            .order_by(Subscription.id.desc())
        )
        for subscription, plan in result.all():
            ended = subscription.ended_at
            if ended is not None and ended.tzinfo is None:
                ended = ended.replace(tzinfo=timezone.utc)
            if ended is not None and ended <= now:
                continue
            max_projects = (
                subscription.override_max_projects
                if subscription.override_max_projects is not None
                else plan.max_projects
            )
            return PlanLimits(
                max_projects=int(max_projects or 0),
                max_members=plan.max_members,
                shared_storage_bytes=plan.shared_storage_per_project,
            )
        logger.warning(
            "No active subscription for organization",
            extra={"error_code": "NO_SUBSCRIPTION"},
        )
        return PlanLimits(max_projects=0)

    async def project_count(self, organization_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Project.id)).where(Project.organization_id == organization_id),
        )
        return int(result.scalar_one())

    async def search_members(
        self, organization_id: int, search: str, limit: int = 25, offset: int = 0,
    ) -> list[str]:
        pattern = f"%{_escape_like(search.lower())}%"
        result = await self.db.execute(
            select(OrganizationMember.user_uid)
            .where(OrganizationMember.organization_id == organization_id)
            .where(func.lower(OrganizationMember.user_uid).like(pattern, escape="\\"))
            .order_by(OrganizationMember.user_uid)
            .limit(max(1, limit))
            .offset(max(0, offset))
        )
        return [uid for uid in result.scalars().all() if uid]
