"""Integration Tests: ProjectNotesService - titled database notes.

Tests cover:
    - Private notes only visible to their author (404 for everyone else)
    - Authors edit and delete; admins may edit public notes only
    - Only the author changes visibility
    - Title and visibility validation
    - private_available follows the caller's private folder link
"""

import pytest

from projectcreator.core.errors import (
    PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from projectcreator.services.project_notes import ProjectNotesService


async def test_list_notes_splits_buckets(test_db, project, caller_for):
    service = ProjectNotesService(test_db)
    alice = await caller_for("alice")
    bob = await caller_for("bob")
    await service.create_note(bob, project, "Shared", "for all")
    await service.create_note(bob, project, "Mine", "secret", "private")
    await service.create_note(alice, project, "Alice only", visibility="PRIVATE")

    notes = await service.list_notes(bob, project)

    assert [n["title"] for n in notes["public"]] == ["Shared"]
    assert [n["title"] for n in notes["private"]] == ["Mine"]
    assert notes["private_available"] is True


async def test_list_notes_private_unavailable_without_folder(test_db, project, caller_for):
    carol = await caller_for("carol")

    notes = await ProjectNotesService(test_db).list_notes(carol, project)

    assert notes == {"public": [], "private": [], "private_available": False}


async def test_private_note_hidden_from_others(test_db, project, caller_for):
    service = ProjectNotesService(test_db)
    bob = await caller_for("bob")
    note = await service.create_note(bob, project, "Mine", visibility="private")

    assert (await service.get_note(bob, project, note.id)).title == "Mine"
    with pytest.raises(ResourceNotFoundError):
        await service.get_note(await caller_for("alice"), project, note.id)


async def test_create_note_validation(test_db, project, caller_for):
    service = ProjectNotesService(test_db)
    bob = await caller_for("bob")

    with pytest.raises(ValidationError, match="Missing title"):
        await service.create_note(bob, project, "   ")
    with pytest.raises(ValidationError, match="Invalid visibility"):
        await service.create_note(bob, project, "X", visibility="team")


async def test_admin_edits_public_note_but_not_visibility(test_db, project, caller_for):
    service = ProjectNotesService(test_db)
    bob = await caller_for("bob")
    alice = await caller_for("alice")
    note = await service.create_note(bob, project, "Shared", "v1")

    updated = await service.update_note(alice, project, note.id, content="v2")
    assert updated.content == "v2"
    assert updated.user_id == "bob"

    with pytest.raises(PermissionDeniedError):
        await service.update_note(alice, project, note.id, visibility="private")


async def test_member_cannot_edit_others_note(test_db, platform, project, caller_for):
    await platform.groups.add_user(project.project_group_gid, "carol")
    service = ProjectNotesService(test_db)
    note = await service.create_note(await caller_for("bob"), project, "Shared")

    with pytest.raises(PermissionDeniedError):
        await service.delete_note(await caller_for("carol"), project, note.id)


async def test_author_deletes_note(test_db, project, caller_for):
    service = ProjectNotesService(test_db)
    bob = await caller_for("bob")
    note = await service.create_note(bob, project, "Temp", visibility="private")
    note_id = note.id

    assert await service.delete_note(bob, project, note_id) == {"deleted": True}
    with pytest.raises(ResourceNotFoundError):
        await service.get_note(bob, project, note_id)
