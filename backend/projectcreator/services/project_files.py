"""Project Files - file trees, whiteboard info and file-backed notes.

Invariants:
    - The shared tree is read through the caller's own home (group folder mount)
    - The private tree is the caller's linked private folder only
    - Public note: <shared>/Public Notes/public-note.md; private note: <private>/private-note.md
    - Note files are created empty on first read
    - A legacy <shared>/Private Notes/private-note.md seeds the private note once,
      only while the private note file does not exist yet

Design Decisions:
    - The private folder is found by WebDAV file id in the caller's home listing,
      then by its stored path (folders may have been renamed)
"""

import logging
import posixpath

from sqlalchemy.ext.asyncio import AsyncSession

from projectcreator.core.domain_types import Caller, FileEntry
from projectcreator.core.errors import (
    PermissionDeniedError, ProvisioningError, ResourceNotFoundError,
)
from projectcreator.core.file_tree import build_tree
from projectcreator.core.gateway_protocols import Platform
from projectcreator.core.naming import whiteboard_file_name
from projectcreator.models.project import Project
from projectcreator.services.project_access import find_private_folder_link

logger = logging.getLogger(__name__)

PUBLIC_NOTES_FOLDER = "Public Notes"
PUBLIC_NOTE_FILE = "public-note.md"
PRIVATE_NOTE_FILE = "private-note.md"
LEGACY_PRIVATE_NOTES_FOLDER = "Private Notes"


class ProjectFilesService:
    """WebDAV-backed reads and writes scoped to one project and caller."""

    def __init__(self, db: AsyncSession, platform: Platform):
        self.db = db
        self.files = platform.files

    # ─── Trees ───────────────────────────────────────────────────

    async def get_project_files(self, caller: Caller, project: Project) -> dict:
        user_id = caller.user_id
        shared_root = await self._shared_root(user_id, project)
        if shared_root is None:
            raise ResourceNotFoundError(
                "Folder", message="Project folder node not found on the filesystem.",
            )
        shared_tree = build_tree(shared_root, await self._walk(user_id, shared_root.path))

        private_trees = []
        private_root = await self._private_folder(project.id, user_id)
        if private_root is not None:
            private_trees.append(
                build_tree(private_root, await self._walk(user_id, private_root.path)),
            )
        return {"shared": [shared_tree], "private": private_trees}

    async def _walk(self, user_id: str, path: str) -> list[FileEntry]:
        entries: list[FileEntry] = []
        pending = [path]
        while pending:
            current = pending.pop()
            for entry in await self.files.list_folder(user_id, current):
                entries.append(entry)
                if entry.is_dir:
                    pending.append(entry.path)
        return entries

    def get_whiteboard_info(self, project: Project) -> dict:
        raw = (project.white_board_id or "").strip()
        return {
            "fileId": int(raw) if raw.isdigit() else 0,
            "fileName": whiteboard_file_name(project.name),
            "folderPath": project.folder_path or "",
        }

    # ─── File-backed notes ───────────────────────────────────────

    async def get_notes(self, caller: Caller, project: Project) -> dict:
        user_id = caller.user_id
        shared_root = await self._shared_root(user_id, project)

        public = ""
        if shared_root is not None:
            notes_dir = await self._ensure_folder(
                user_id, posixpath.join(shared_root.path, PUBLIC_NOTES_FOLDER),
            )
            public = await self._read_or_create(
                user_id, posixpath.join(notes_dir, PUBLIC_NOTE_FILE),
            )

        private_root = await self._private_folder(project.id, user_id)
        if private_root is None:
            return {"public": public, "private": "", "private_available": False}

        private_path = posixpath.join(private_root.path, PRIVATE_NOTE_FILE)
        if shared_root is not None and await self.files.stat(user_id, private_path) is None:
            legacy = await self._read_legacy_private_note(user_id, shared_root.path)
            if legacy:
                await self.files.write_text(user_id, private_path, legacy)
                logger.info(
                    "Migrated legacy private note",
                    extra={"project_id": project.id, "user_id": user_id},
                )

        private = await self._read_or_create(user_id, private_path)
        return {"public": public, "private": private, "private_available": True}

    async def update_notes(
        self,
        caller: Caller,
        project: Project,
        public_note: str | None = None,
        private_note: str | None = None,
    ) -> dict:
        user_id = caller.user_id
        if public_note is not None:
            shared_root = await self._shared_root(user_id, project)
            if shared_root is None:
                raise ResourceNotFoundError("Folder", message="Project shared folder not found")
            notes_dir = await self._ensure_folder(
                user_id, posixpath.join(shared_root.path, PUBLIC_NOTES_FOLDER),
            )
            await self.files.write_text(
                user_id, posixpath.join(notes_dir, PUBLIC_NOTE_FILE), public_note,
            )

        if private_note is not None:
            private_root = await self._private_folder(project.id, user_id)
            if private_root is None:
                raise PermissionDeniedError("Private note is not available for this user")
            await self.files.write_text(
                user_id, posixpath.join(private_root.path, PRIVATE_NOTE_FILE), private_note,
            )

        return await self.get_notes(caller, project)

    # ─── Helpers ─────────────────────────────────────────────────

    async def _shared_root(self, user_id: str, project: Project) -> FileEntry | None:
        path = (project.folder_path or "").strip("/")
        if not path:
            return None
        entry = await self.files.stat(user_id, path)
        return entry if entry is not None and entry.is_dir else None

    async def _private_folder(self, project_id: int, user_id: str) -> FileEntry | None:
        link = await find_private_folder_link(self.db, project_id, user_id)
        if link is None:
            return None
        if link.folder_id > 0:
            for entry in await self.files.list_folder(user_id, ""):
                if entry.is_dir and entry.file_id == link.folder_id:
                    return entry
        path = (link.folder_path or "").strip("/")
        if not path:
            return None
        entry = await self.files.stat(user_id, path)
        return entry if entry is not None and entry.is_dir else None

    async def _ensure_folder(self, user_id: str, path: str) -> str:
        entry = await self.files.stat(user_id, path)
        if entry is None:
            entry = await self.files.create_folder(user_id, path)
        elif not entry.is_dir:
            raise ProvisioningError(
                f"{posixpath.basename(path)} exists but is not a folder", step="notes",
            )
        return entry.path

    async def _read_or_create(self, user_id: str, path: str) -> str:
        entry = await self.files.stat(user_id, path)
        if entry is None:
            await self.files.write_text(user_id, path, "")
            return ""
        if entry.is_dir:
            raise ProvisioningError(
                f"{posixpath.basename(path)} exists but is not a file", step="notes",
            )
        return await self.files.read_text(user_id, path)

    async def _read_legacy_private_note(self, user_id: str, shared_path: str) -> str:
        path = posixpath.join(shared_path, LEGACY_PRIVATE_NOTES_FOLDER, PRIVATE_NOTE_FILE)
        entry = await self.files.stat(user_id, path)
        if entry is None or entry.is_dir:
            return ""
        return await self.files.read_text(user_id, path)
