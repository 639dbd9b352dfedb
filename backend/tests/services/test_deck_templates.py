"""Integration Tests: DeckTemplateService - permission templates addressed through a board.

Tests cover:
    - create_from_board snapshots roles, defaults, stacks and card policies
    - create requires project membership, card_policy mode and a unique name
    - list/can-apply/get/delete permission rules
"""

import json

import pytest

from projectcreator.core.errors import (
    PermissionDeniedError, PlatformError, ProjectCreatorError,
    ResourceNotFoundError, ValidationError,
)
from projectcreator.models.deck_permission_template import DeckPermissionTemplate
from projectcreator.services.deck_template_service import DeckTemplateService
from projectcreator.services.project_service import ProjectDraft, ProjectService


@pytest.fixture
def board_id(project):
    return int(project.board_id)


@pytest.fixture
async def template(test_db, platform, board_id, caller_for):
    platform.deck.board(board_id).roles = [
        {"roleKey": "cpl", "name": "CPL", "color": "#ff0000"},
        {"roleKey": "", "name": "Broken"},
    ]
    alice = await caller_for("alice")
    return await DeckTemplateService(test_db, platform).create_from_board(alice, board_id, " Standard ")


# ==============================================================================
# create_from_board
# ==============================================================================


async def test_snapshot_payload(template, board_id):
    payload = json.loads(template.template_json)

    assert template.name == "Standard"
    assert template.created_by == "alice"
    assert payload["version"] == 1
    assert payload["createdFrom"] == {"boardId": board_id, "permissionMode": "card_policy"}
    assert payload["roles"] == [{"roleKey": "cpl", "name": "CPL", "color": "#ff0000"}]
    assert payload["defaults"] == {"move": [], "approve": [], "view": []}
    assert [s["order"] for s in payload["stacks"]] == [0, 1, 2, 3, 4]
    assert len(payload["cards"]) == 20

    first = payload["cards"][0]
    assert first["title"] == "Garantie overeenkomst"
    assert first["stackTitle"] == "Process steps"
    assert first["policy"] == {"move": ["client_developer"], "approve": ["cpl"], "view": []}


async def test_snapshot_skips_archived_cards(test_db, platform, board_id, caller_for):
    platform.deck.add_card(board_id, 2, "Old card", archived=True)
    bob = await caller_for("bob")

    template = await DeckTemplateService(test_db, platform).create_from_board(bob, board_id, "Mine")

    titles = [c["title"] for c in json.loads(template.template_json)["cards"]]
    assert "Old card" not in titles


async def test_duplicate_name_rejected(test_db, platform, template, board_id, caller_for):
    alice = await caller_for("alice")
    with pytest.raises(ValidationError, match="already exists"):
        await DeckTemplateService(test_db, platform).create_from_board(alice, board_id, "Standard")


async def test_create_requires_name_and_access(test_db, platform, board_id, caller_for):
    service = DeckTemplateService(test_db, platform)
    with pytest.raises(ValidationError, match="name is required"):
        await service.create_from_board(await caller_for("alice"), board_id, "  ")
    with pytest.raises(PermissionDeniedError, match="access to this project"):
        await service.create_from_board(await caller_for("carol"), board_id, "X")
    with pytest.raises(ResourceNotFoundError, match="not linked"):
        await service.create_from_board(await caller_for("alice"), 987654, "X")


async def test_legacy_board_rejected(test_db, platform, board_id, caller_for):
    platform.deck.board(board_id).mode = "legacy"
    with pytest.raises(ValidationError, match="Granular permissions"):
        await DeckTemplateService(test_db, platform).create_from_board(
            await caller_for("alice"), board_id, "X",
        )


async def test_deck_forbidden_maps_to_permission_denied(test_db, platform, board_id, caller_for):
    platform.fail("deck.get_policy_state", PlatformError("forbidden", "deck", status_code=403))
    with pytest.raises(PermissionDeniedError, match="manage this board"):
        await DeckTemplateService(test_db, platform).create_from_board(
            await caller_for("alice"), board_id, "X",
        )


# ==============================================================================
# Reads
# ==============================================================================


async def test_list_templates(test_db, platform, template, board_id, caller_for):
    service = DeckTemplateService(test_db, platform)

    assert [t.id for t in await service.list_for_user(await caller_for("bob"))] == [template.id]
    assert await service.list_for_user(await caller_for("root")) == []
    assert await service.list_for_user(await caller_for("eve")) == []
    assert [t.name for t in await service.list_for_board(await caller_for("bob"), board_id)] == ["Standard"]
    with pytest.raises(PermissionDeniedError):
        await service.list_for_board(await caller_for("carol"), board_id)
    with pytest.raises(ValidationError, match="Invalid board"):
        await service.list_for_board(await caller_for("bob"), 0)


@pytest.mark.parametrize("user_id, expected", [
    ("alice", True), ("root", True), ("bob", False), ("eve", False),
])
async def test_can_apply(test_db, platform, board_id, caller_for, user_id, expected):
    caller = await caller_for(user_id)
    assert await DeckTemplateService(test_db, platform).can_apply_for_board(caller, board_id) is expected


async def test_can_apply_unknown_board(test_db, platform, project, caller_for):
    alice = await caller_for("alice")
    assert await DeckTemplateService(test_db, platform).can_apply_for_board(alice, 987654) is False


async def test_get_for_board(test_db, platform, template, board_id, caller_for):
    service = DeckTemplateService(test_db, platform)

    result = await service.get_for_board(await caller_for("alice"), template.id, board_id)
    assert result["name"] == "Standard"
    assert result["payload"]["version"] == 1

    with pytest.raises(PermissionDeniedError, match="apply templates"):
        await service.get_for_board(await caller_for("bob"), template.id, board_id)


async def test_get_template_of_other_organization(test_db, platform, board_id, tenants, caller_for):
    foreign = DeckPermissionTemplate(
        organization_id=tenants["org2"], name="Theirs", created_by="eve", template_json="{}",
    )
    test_db.add(foreign)
    await test_db.commit()

    with pytest.raises(ResourceNotFoundError, match="Template not found"):
        await DeckTemplateService(test_db, platform).get_for_board(
            await caller_for("alice"), foreign.id, board_id,
        )


async def test_get_corrupt_payload(test_db, platform, template, board_id, caller_for):
    template.template_json = "not json"
    await test_db.commit()

    with pytest.raises(ProjectCreatorError) as exc:
        await DeckTemplateService(test_db, platform).get_for_board(
            await caller_for("alice"), template.id, board_id,
        )
    assert exc.value.code == "INVALID_TEMPLATE"
    assert exc.value.http_status == 500


# ==============================================================================
# delete
# ==============================================================================


async def test_creator_deletes_own_template(test_db, platform, board_id, caller_for):
    bob = await caller_for("bob")
    service = DeckTemplateService(test_db, platform)
    template = await service.create_from_board(bob, board_id, "Bob's")
    template_id = template.id

    await service.delete(bob, template_id)

    assert await test_db.get(DeckPermissionTemplate, template_id) is None


async def test_member_cannot_delete_others_template(test_db, platform, template, board_id, caller_for):
    with pytest.raises(PermissionDeniedError, match="delete this template"):
        await DeckTemplateService(test_db, platform).delete(
            await caller_for("carol"), template.id, board_id,
        )


async def test_project_owner_deletes_with_board_context(test_db, platform, template, caller_for):
    bob = await caller_for("bob")
    gamma = await ProjectService(test_db, platform).create_project(
        bob, ProjectDraft(name="Gamma", number="G-1", type=1),
    )
    service = DeckTemplateService(test_db, platform)

    with pytest.raises(PermissionDeniedError):
        await service.delete(bob, template.id)
    await service.delete(bob, template.id, int(gamma.board_id))


async def test_delete_missing_template(test_db, platform, project, caller_for):
    with pytest.raises(ResourceNotFoundError):
        await DeckTemplateService(test_db, platform).delete(await caller_for("alice"), 555)
