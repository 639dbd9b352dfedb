"""Timeline Service - Gantt items of a project plus derived system items.

Invariants:
    - index() syncs derived system items first; a sync failure is logged, never raised
    - System items keep label, type and order on user updates and cannot be deleted (403)
    - New user items get order max(3, current max + 1)
    - reorder() assigns 10, 11, ... in payload order inside one transaction
    - Milestones always end on their start date; end >= start otherwise

Design Decisions:
    - Items are listed by (order_index, id)
    - Date strings: None leaves a date unchanged, "" clears it
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import TimelineItemType
from projectcreator.core.errors import (
    ErrorContext, PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from projectcreator.core.gateway_protocols import Platform
from projectcreator.core.timeline_rules import (
    DEFAULT_ITEM_COLOR, REORDER_START_INDEX, SystemItemDef,
    check_date_range, derived_system_items, next_order_index,
    normalize_item_type, parse_date, validate_reorder,
)
from projectcreator.models.project import Project
from projectcreator.models.timeline_item import TimelineItem
from projectcreator.services.deck_done_sync import DeckDoneSyncService
from projectcreator.services.timeline_planning_service import TimelinePlanningService

logger = logging.getLogger(__name__)


def _is_blank(value: str | None) -> bool:
    return value is not None and value.strip() == ""


class TimelineService:
    """Timeline items and scheduling summary for one project."""

    def __init__(self, db: AsyncSession, platform: Platform):
        self.db = db
        self.platform = platform
        self.planning = TimelinePlanningService(platform.deck)

    # ─── Reads ───────────────────────────────────────────────────

    async def index(self, project: Project) -> list[dict]:
        project_id = project.id
        await self.sync_system_items(project)
        return [item.to_dict() for item in await self._items(project_id)]

    async def summary(self, project: Project) -> dict:
        return await self.planning.build_summary(project)

    async def _items(self, project_id: int) -> list[TimelineItem]:
        result = await self.db.execute(
            select(TimelineItem)
            .where(TimelineItem.project_id == project_id)
            .order_by(TimelineItem.order_index, TimelineItem.id)
        )
        return list(result.scalars().all())

    async def _item_for_project(self, project: Project, item_id: int) -> TimelineItem:
        item = await self.db.get(TimelineItem, item_id)
        if item is None:
            raise ResourceNotFoundError(
                "Timeline item", item_id, context=ErrorContext(project_id=project.id),
                message="Timeline item not found",
            )
        if item.project_id != project.id:
            raise PermissionDeniedError("Item does not belong to this project")
        return item

    # ─── System items ────────────────────────────────────────────

    async def sync_system_items(self, project: Project) -> None:
        """Upsert request_date / process_completed / prep_time from the summary.

        A failure rolls the session back, which expires loaded instances;
        callers must not read attributes of `project` afterwards without a refresh.
        """
        project_id = project.id
        try:
            summary = await self.planning.build_summary(project)
            upserts, deletes = derived_system_items(summary)
            for item_def in upserts:
                await self._upsert_system_item(project_id, item_def)
            if deletes:
                await self.db.execute(
                    delete(TimelineItem)
                    .where(TimelineItem.project_id == project_id)
                    .where(TimelineItem.system_key.in_(deletes))
                )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                f"Timeline system item sync failed: {e}",
                extra={"project_id": project_id},
            )

    async def _upsert_system_item(self, project_id: int, item_def: SystemItemDef) -> None:
        result = await self.db.execute(
            select(TimelineItem)
            .where(TimelineItem.project_id == project_id)
            .where(TimelineItem.system_key == item_def.key)
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            self.db.add(TimelineItem(
                project_id=project_id,
                label=item_def.label,
                start_date=item_def.start,
                end_date=item_def.end,
                color=item_def.color,
                order_index=item_def.order_index,
                system_key=item_def.key,
                item_type=item_def.item_type.value,
            ))
            await self.db.flush()
            return
        existing.label = item_def.label
        existing.item_type = item_def.item_type.value
        existing.start_date = item_def.start
        existing.end_date = item_def.end
        existing.color = item_def.color
        existing.updated_at = datetime.now(timezone.utc)

    # ─── Writes ──────────────────────────────────────────────────

    async def create(
        self,
        project: Project,
        label: str | None,
        start_date: str | None,
        end_date: str | None = None,
        color: str | None = None,
        item_type: str | None = None,
    ) -> TimelineItem:
        project_id = project.id
        await self.sync_system_items(project)

        label = (label or "").strip()
        if not label:
            raise ValidationError("Missing label", field="label")
        kind = normalize_item_type(item_type)
        start = parse_date(start_date)
        end = parse_date(end_date)
        if start is None:
            raise ValidationError("Missing start date", field="startDate")
        if kind is TimelineItemType.MILESTONE:
            end = start
        check_date_range(start, end)

        current_max = await self.db.scalar(
            select(func.max(TimelineItem.order_index))
            .where(TimelineItem.project_id == project_id)
        )
        item = TimelineItem(
            project_id=project_id,
            label=label,
            start_date=start,
            end_date=end,
            color=color or DEFAULT_ITEM_COLOR,
            order_index=next_order_index(current_max),
            system_key=None,
            item_type=kind.value,
        )
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def update(
        self,
        project: Project,
        item_id: int,
        label: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        color: str | None = None,
        item_type: str | None = None,
        order_index: int | None = None,
    ) -> TimelineItem:
        item = await self._item_for_project(project, item_id)
        system = item.is_system

        if not system and label is not None:
            label = label.strip()
            if not label:
                raise ValidationError("Missing label", field="label")
            item.label = label

        start = parse_date(start_date)
        if start is not None:
            item.start_date = start
        elif _is_blank(start_date):
            item.start_date = None

        end = parse_date(end_date)
        if end is not None:
            item.end_date = end
        elif _is_blank(end_date):
            item.end_date = None

        if color is not None:
            item.color = color
        if not system and item_type is not None:
            item.item_type = normalize_item_type(item_type).value
        if not system and order_index is not None:
            item.order_index = order_index

        if item.item_type == TimelineItemType.MILESTONE.value and item.start_date is not None:
            item.end_date = item.start_date
        check_date_range(item.start_date, item.end_date)

        item.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def destroy(self, project: Project, item_id: int) -> dict:
        item = await self._item_for_project(project, item_id)
        if item.is_system:
            raise PermissionDeniedError("System timeline items cannot be deleted")
        await self.db.delete(item)
        await self.db.commit()
        return {"success": True}

    async def reorder(self, project: Project, ids: list) -> list[dict]:
        if not ids:
            raise ValidationError("Missing ids", field="ids")
        items = await self._items(project.id)
        by_id = {item.id: item for item in items if not item.is_system}
        ordered = validate_reorder(ids, list(by_id))

        now = datetime.now(timezone.utc)
        for offset, item_id in enumerate(ordered):
            by_id[item_id].order_index = REORDER_START_INDEX + offset
            by_id[item_id].updated_at = now
        await self.db.commit()
        return [item.to_dict() for item in await self._items(project.id)]

    async def sync_done(self, project: Project) -> dict:
        changed = await DeckDoneSyncService(self.db, self.platform.deck).sync_project(project)
        return {"changed": changed, "summary": await self.planning.build_summary(project)}
