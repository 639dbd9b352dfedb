"""Integration Tests: DeckDoneSyncService and the Deck card webhook.

Tests cover:
    - Moving a required card into the approved stack marks it done (managed)
    - Moving it out again clears the managed done flag
    - Manually done cards and untracked titles are left alone
    - Card events for unknown boards/cards are no-ops
    - A Deck error or flag conflict on one card leaves it unchanged while the
      other cards are still synced and committed
    - Webhook authentication by shared secret
"""

from datetime import datetime, timezone

from sqlalchemy import select

from projectcreator.core.errors import PlatformError
from projectcreator.models.deck_done_sync import DeckDoneSync
from projectcreator.services.deck_done_sync import DeckDoneSyncService
from projectcreator.services.timeline_service import TimelineService

APPROVED = 4
NEXT_PRIORITY = 1
WEBHOOK_HEADERS = {"X-Webhook-Secret": "test-webhook-secret"}


def _card_id(platform, board_id, title):
    stack = platform.deck.stack_by_order(board_id, NEXT_PRIORITY)
    return next(c.id for c in stack.cards if c.title == title)


async def _flag(db, project_id, card_id):
    result = await db.execute(
        select(DeckDoneSync)
        .where(DeckDoneSync.project_id == project_id)
        .where(DeckDoneSync.card_id == card_id)
    )
    return result.scalar_one_or_none()


# ==============================================================================
# Service
# ==============================================================================


async def test_approved_card_marked_then_cleared(test_db, platform, project):
    board_id = int(project.board_id)
    card_id = _card_id(platform, board_id, "AVP")
    service = DeckDoneSyncService(test_db, platform.deck)

    platform.deck.move_card(board_id, card_id, APPROVED)
    assert await service.sync_project(project) == 1
    assert platform.deck.card(board_id, card_id)[1].done is not None
    assert (await _flag(test_db, project.id, card_id)).managed_done == 1

    assert await service.sync_project(project) == 0

    platform.deck.move_card(board_id, card_id, NEXT_PRIORITY)
    assert await service.sync_project(project) == 1
    assert platform.deck.card(board_id, card_id)[1].done is None
    assert (await _flag(test_db, project.id, card_id)).managed_done == 0


async def test_manual_done_is_kept(test_db, platform, project):
    board_id = int(project.board_id)
    card_id = _card_id(platform, board_id, "Quickscan")
    manual = datetime(2026, 3, 1, tzinfo=timezone.utc)
    platform.deck.card(board_id, card_id)[1].done = manual

    changed = await DeckDoneSyncService(test_db, platform.deck).sync_project(project)

    assert changed == 0
    assert platform.deck.card(board_id, card_id)[1].done == manual


async def test_untracked_card_ignored(test_db, platform, project):
    board_id = int(project.board_id)
    card_id = platform.deck.add_card(board_id, APPROVED, "Random note")

    service = DeckDoneSyncService(test_db, platform.deck)
    assert await service.sync_card_event(board_id, card_id) == 0
    assert platform.deck.card(board_id, card_id)[1].done is None


async def test_card_event_for_tracked_card(test_db, platform, project):
    board_id = int(project.board_id)
    card_id = _card_id(platform, board_id, "Intakeformulier")
    platform.deck.move_card(board_id, card_id, APPROVED)

    changed = await DeckDoneSyncService(test_db, platform.deck).sync_card_event(board_id, card_id)

    assert changed == 1
    assert platform.deck.card(board_id, card_id)[1].done is not None


async def test_card_event_unknown_board_or_card(test_db, platform, project):
    service = DeckDoneSyncService(test_db, platform.deck)
    assert await service.sync_card_event(987654, 1) == 0
    assert await service.sync_card_event(int(project.board_id), 987654) == 0
    assert await service.sync_card_event(0, 1) == 0


async def test_per_card_failure_counts_as_unchanged(test_db, platform, project):
    board_id = int(project.board_id)
    platform.deck.move_card(board_id, _card_id(platform, board_id, "AVP"), APPROVED)
    platform.fail("deck.set_card_done")

    assert await DeckDoneSyncService(test_db, platform.deck).sync_project(project) == 0


async def test_deck_failure_on_one_card_keeps_the_others(test_db, platform, project, monkeypatch):
    board_id = int(project.board_id)
    project_id = project.id
    avp = _card_id(platform, board_id, "AVP")
    quickscan = _card_id(platform, board_id, "Quickscan")
    platform.deck.move_card(board_id, avp, APPROVED)
    platform.deck.move_card(board_id, quickscan, APPROVED)

    original = platform.deck.set_card_done

    async def reject_avp(board_id, stack_id, card_id, done):
        if card_id == avp:
            raise PlatformError("forbidden", "deck", 403)
        await original(board_id, stack_id, card_id, done)

    monkeypatch.setattr(platform.deck, "set_card_done", reject_avp)

    assert await DeckDoneSyncService(test_db, platform.deck).sync_project(project) == 1

    # anything not committed is gone after this
    await test_db.rollback()
    assert platform.deck.card(board_id, avp)[1].done is None
    assert await _flag(test_db, project_id, avp) is None
    assert platform.deck.card(board_id, quickscan)[1].done is not None
    assert (await _flag(test_db, project_id, quickscan)).managed_done == 1


async def test_flag_conflict_leaves_card_untouched(test_db, platform, project, monkeypatch):
    board_id = int(project.board_id)
    project_id = project.id
    avp = _card_id(platform, board_id, "AVP")
    quickscan = _card_id(platform, board_id, "Quickscan")
    # another sync run already recorded AVP
    test_db.add(DeckDoneSync(project_id=project_id, card_id=avp, managed_done=0))
    await test_db.commit()
    platform.deck.move_card(board_id, avp, APPROVED)
    platform.deck.move_card(board_id, quickscan, APPROVED)

    service = DeckDoneSyncService(test_db, platform.deck)

    async def stale_lookup(project_id, card_id):
        return None

    monkeypatch.setattr(service, "_flag", stale_lookup)

    assert await service.sync_project(project) == 1

    await test_db.rollback()
    assert platform.deck.card(board_id, avp)[1].done is None
    assert (await _flag(test_db, project_id, avp)).managed_done == 0
    assert platform.deck.card(board_id, quickscan)[1].done is not None
    assert (await _flag(test_db, project_id, quickscan)).managed_done == 1


async def test_timeline_sync_done_returns_summary(test_db, platform, project):
    board_id = int(project.board_id)
    platform.deck.move_card(board_id, _card_id(platform, board_id, "AVP"), APPROVED)

    result = await TimelineService(test_db, platform).sync_done(project)

    assert result["changed"] == 1
    assert result["summary"]["processCompleted"]["doneCount"] == 1


# ==============================================================================
# Webhook route
# ==============================================================================


async def test_webhook_triggers_sync(client, platform, project):
    board_id = int(project.board_id)
    card_id = _card_id(platform, board_id, "AVP")
    platform.deck.move_card(board_id, card_id, APPROVED)

    response = await client.post(
        "/api/v1/webhooks/deck/cards",
        json={"event": "card_updated", "boardId": board_id, "cardId": card_id},
        headers=WEBHOOK_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"changed": 1}


async def test_webhook_rejects_bad_secret(client, project):
    response = await client.post(
        "/api/v1/webhooks/deck/cards",
        json={"boardId": int(project.board_id), "cardId": 1},
        headers={"X-Webhook-Secret": "wrong"},
    )
    assert response.status_code == 401


async def test_webhook_validates_payload(client):
    response = await client.post(
        "/api/v1/webhooks/deck/cards",
        json={"event": "card_deleted", "boardId": 1, "cardId": 1},
        headers=WEBHOOK_HEADERS,
    )
    assert response.status_code == 400
