"""Project Notes - titled database notes attached to a project.

Invariants:
    - Private notes are visible to their author only (others get 404)
    - Public notes are visible to everyone with project access
    - Only the author edits or deletes a note; org/global admins may also
      edit or delete public notes
    - list_notes orders each bucket newest first
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, NoteVisibility
from projectcreator.core.errors import (
    ErrorContext, PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from projectcreator.models.project import Project
from projectcreator.models.project_note import ProjectNote
from projectcreator.services.project_access import find_private_folder_link

logger = logging.getLogger(__name__)


def normalize_visibility(value: str | None) -> NoteVisibility:
    text = (value or "").strip().lower() or NoteVisibility.PUBLIC.value
    try:
        return NoteVisibility(text)
    except ValueError:
        raise ValidationError("Invalid visibility", field="visibility")


class ProjectNotesService:
    """CRUD over project_notes for one caller."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_notes(self, caller: Caller, project: Project) -> dict:
        public = await self.db.execute(
            select(ProjectNote)
            .where(ProjectNote.project_id == project.id)
            .where(ProjectNote.visibility == NoteVisibility.PUBLIC.value)
            .order_by(ProjectNote.created_at.desc(), ProjectNote.id.desc())
        )
        private = await self.db.execute(
            select(ProjectNote)
            .where(ProjectNote.project_id == project.id)
            .where(ProjectNote.visibility == NoteVisibility.PRIVATE.value)
            .where(ProjectNote.user_id == caller.user_id)
            .order_by(ProjectNote.created_at.desc(), ProjectNote.id.desc())
        )
        link = await find_private_folder_link(self.db, project.id, caller.user_id)
        return {
            "public": [n.to_dict() for n in public.scalars().all()],
            "private": [n.to_dict() for n in private.scalars().all()],
            "private_available": link is not None,
        }

    async def get_note(self, caller: Caller, project: Project, note_id: int) -> ProjectNote:
        note = await self.db.get(ProjectNote, note_id)
        if (
            note is None
            or note.project_id != project.id
            or (note.visibility == NoteVisibility.PRIVATE.value and note.user_id != caller.user_id)
        ):
            raise ResourceNotFoundError(
                "Note", note_id, context=ErrorContext(project_id=project.id),
                message="Note not found",
            )
        return note

    async def create_note(
        self, caller: Caller, project: Project,
        title: str, content: str = "", visibility: str | None = None,
    ) -> ProjectNote:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Missing title", field="title")
        note = ProjectNote(
            project_id=project.id,
            user_id=caller.user_id,
            title=title,
            content=content or "",
            visibility=normalize_visibility(visibility).value,
        )
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def update_note(
        self, caller: Caller, project: Project, note_id: int,
        title: str | None = None, content: str | None = None, visibility: str | None = None,
    ) -> ProjectNote:
        note = await self.get_note(caller, project, note_id)
        self._assert_can_edit(caller, note)
        if title is not None:
            title = title.strip()
            if not title:
                raise ValidationError("Missing title", field="title")
            note.title = title
        if content is not None:
            note.content = content
        if visibility is not None:
            if note.user_id != caller.user_id:
                raise PermissionDeniedError("Only the author can change note visibility")
            note.visibility = normalize_visibility(visibility).value
        note.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def delete_note(self, caller: Caller, project: Project, note_id: int) -> dict:
        note = await self.get_note(caller, project, note_id)
        self._assert_can_edit(caller, note)
        await self.db.delete(note)
        await self.db.commit()
        logger.info("Note deleted", extra={"project_id": project.id, "user_id": caller.user_id})
        return {"deleted": True}

    def _assert_can_edit(self, caller: Caller, note: ProjectNote) -> None:
        if note.user_id == caller.user_id:
            return
        if note.visibility == NoteVisibility.PUBLIC.value and (
            caller.is_global_admin or caller.is_org_admin
        ):
            return
        raise PermissionDeniedError("You do not have permission to modify this note")
