"""Project Content Routes - file trees, whiteboard, file-backed notes and database notes.

Invariants:
    - All routes require read access to the project
    - /notes (GET/PUT) are the file-backed notes; /notes/list and /notes/{note_id} the database notes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.api.deps import get_accessible_project, get_caller, get_platform
from projectcreator.core.domain_types import Caller
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.database import get_db
from projectcreator.models.project import Project
from projectcreator.schemas.note import NoteCreate, NoteUpdate
from projectcreator.schemas.project import FileNotesUpdate
from projectcreator.services.project_files import ProjectFilesService
from projectcreator.services.project_notes import ProjectNotesService

router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["project-content"])


@router.get("/files")
async def get_files(
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    files = await ProjectFilesService(db, platform).get_project_files(caller, project)
    return {"files": files}


@router.get("/whiteboard")
async def get_whiteboard(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return ProjectFilesService(db, platform).get_whiteboard_info(project)


# ─── File-backed notes ──────────────────────────────────────────

@router.get("/notes")
async def get_file_notes(
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await ProjectFilesService(db, platform).get_notes(caller, project)


@router.put("/notes")
async def put_file_notes(
    body: FileNotesUpdate,
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    platform: Platform = Depends(get_platform),
):
    return await ProjectFilesService(db, platform).update_notes(
        caller, project, public_note=body.public_note, private_note=body.private_note,
    )


# ─── Database notes ─────────────────────────────────────────────

@router.get("/notes/list")
async def list_notes(
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return {"notes": await ProjectNotesService(db).list_notes(caller, project)}


@router.post("/notes", status_code=status.HTTP_201_CREATED)
async def create_note(
    body: NoteCreate,
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    note = await ProjectNotesService(db).create_note(
        caller, project, body.title, body.content, body.visibility,
    )
    return note.to_dict()


@router.get("/notes/{note_id}")
async def get_note(
    note_id: int,
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    note = await ProjectNotesService(db).get_note(caller, project, note_id)
    return note.to_dict()


@router.put("/notes/{note_id}")
async def update_note(
    note_id: int,
    body: NoteUpdate,
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    note = await ProjectNotesService(db).update_note(
        caller, project, note_id,
        title=body.title, content=body.content, visibility=body.visibility,
    )
    return note.to_dict()


@router.delete("/notes/{note_id}")
async def delete_note(
    note_id: int,
    project: Project = Depends(get_accessible_project),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectNotesService(db).delete_note(caller, project, note_id)
