"""Deck Gateway - boards, stacks, cards, labels and card policies over the Deck REST API.

Invariants:
    - Group shares use ACL type 1 (Deck's participant type for groups)
    - create_board grants the project owner a user ACL (type 0) with edit, share and
      manage rights; a failed grant removes the new board before the error propagates
    - Stacks are returned with their non-archived cards, sorted by stack order
    - Card done dates are parsed to timezone-aware datetimes (naive values assumed UTC)
    - A 403 from Deck surfaces as PlatformError(status_code=403)

Design Decisions:
    - Card-policy endpoints live under /boards/{id}/card-policy (card-policy Deck build)
    - set_card_done is read-modify-write: Deck's card PUT requires title, type and owner
"""

import logging
from datetime import datetime, timezone

from projectcreator.core.domain_types import DeckCard, DeckLabel, DeckStack
from projectcreator.core.errors import PlatformError
from projectcreator.infrastructure.nextcloud_client import ResilientNextcloudClient

logger = logging.getLogger(__name__)

SERVICE = "deck"
DECK_API = "/index.php/apps/deck/api/v1.0"
ACL_TYPE_USER = 0
ACL_TYPE_GROUP = 1


def parse_deck_datetime(value: object) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _card(raw: dict, stack_id: int) -> DeckCard:
    return DeckCard(
        id=int(raw.get("id") or 0),
        title=str(raw.get("title") or ""),
        stack_id=int(raw.get("stackId") or stack_id),
        order=int(raw.get("order") or 0),
        description=str(raw.get("description") or ""),
        done=parse_deck_datetime(raw.get("done")),
        last_modified=int(raw.get("lastModified") or 0),
        archived=bool(raw.get("archived")),
    )


def _role_keys(values: object) -> list[str]:
    out: list[str] = []
    for value in values or []:
        key = str(value)
        if key and key not in out:
            out.append(key)
    return out


class DeckGateway:
    """DeckBoards implementation."""

    def __init__(self, client: ResilientNextcloudClient):
        self._client = client

    async def _json(self, method: str, path: str, **kwargs) -> object:
        response = await self._client.request(method, f"{DECK_API}{path}", service=SERVICE, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise PlatformError(f"non-JSON response from {path}", SERVICE, response.status_code)

    # ─── Boards ──────────────────────────────────────────────────

    async def create_board(self, title: str, color: str, owner_id: str) -> int:
        data = await self._json("POST", "/boards", json={"title": title, "color": color})
        board_id = int((data or {}).get("id") or 0)
        if board_id <= 0:
            raise PlatformError("board creation returned no id", SERVICE)

        # boards are created as the service account; the owner gets full rights
        if owner_id and owner_id != self._client.user:
            try:
                await self._add_acl(board_id, ACL_TYPE_USER, owner_id, True, True, True)
            except PlatformError:
                await self._discard_board(board_id)
                raise
        return board_id

    async def _discard_board(self, board_id: int) -> None:
        try:
            await self.delete_board(board_id)
        except PlatformError as e:
            logger.error(f"Failed to remove board after owner grant failed: {e}",
                         extra={"board_id": board_id})

    async def delete_board(self, board_id: int) -> None:
        await self._json("DELETE", f"/boards/{board_id}")

    async def _add_acl(
        self, board_id: int, acl_type: int, participant: str,
        edit: bool, share: bool, manage: bool,
    ) -> None:
        await self._json("POST", f"/boards/{board_id}/acl", json={
            "type": acl_type,
            "participant": participant,
            "permissionEdit": edit,
            "permissionShare": share,
            "permissionManage": manage,
        })

    async def share_with_group(
        self, board_id: int, gid: str, edit: bool, share: bool, manage: bool,
    ) -> None:
        await self._add_acl(board_id, ACL_TYPE_GROUP, gid, edit, share, manage)

    async def list_stacks(self, board_id: int) -> list[DeckStack]:
        data = await self._json("GET", f"/boards/{board_id}/stacks") or []
        stacks = [
            DeckStack(
                id=int(raw.get("id") or 0),
                title=str(raw.get("title") or ""),
                order=int(raw.get("order") or 0),
                cards=tuple(
                    _card(c, int(raw.get("id") or 0))
                    for c in (raw.get("cards") or [])
                    if not c.get("deletedAt")
                ),
            )
            for raw in data
            if not raw.get("deletedAt")
        ]
        return sorted(stacks, key=lambda s: (s.order, s.id))

    # ─── Labels & Cards ──────────────────────────────────────────

    async def list_labels(self, board_id: int) -> list[DeckLabel]:
        data = await self._json("GET", f"/boards/{board_id}") or {}
        return [
            DeckLabel(id=int(raw.get("id") or 0), title=str(raw.get("title") or ""),
                      color=str(raw.get("color") or ""))
            for raw in (data.get("labels") or [])
        ]

    async def create_label(self, board_id: int, title: str, color: str) -> int:
        data = await self._json(
            "POST", f"/boards/{board_id}/labels", json={"title": title, "color": color},
        )
        return int((data or {}).get("id") or 0)

    async def create_card(self, board_id: int, stack_id: int, title: str, order: int) -> int:
        data = await self._json(
            "POST", f"/boards/{board_id}/stacks/{stack_id}/cards",
            json={"title": title, "type": "plain", "order": order, "description": ""},
        )
        card_id = int((data or {}).get("id") or 0)
        if card_id <= 0:
            raise PlatformError(f"card '{title}' creation returned no id", SERVICE)
        return card_id

    async def assign_label(self, board_id: int, stack_id: int, card_id: int, label_id: int) -> None:
        await self._json(
            "PUT", f"/boards/{board_id}/stacks/{stack_id}/cards/{card_id}/assignLabel",
            json={"labelId": label_id},
        )

    async def set_card_done(
        self, board_id: int, stack_id: int, card_id: int, done: datetime | None,
    ) -> None:
        path = f"/boards/{board_id}/stacks/{stack_id}/cards/{card_id}"
        card = await self._json("GET", path) or {}
        owner = card.get("owner")
        if isinstance(owner, dict):
            owner = owner.get("uid") or owner.get("primaryKey")
        await self._json("PUT", path, json={
            "title": card.get("title") or "",
            "type": card.get("type") or "plain",
            "owner": owner or self._client.user,
            "order": card.get("order") or 0,
            "description": card.get("description") or "",
            "duedate": card.get("duedate"),
            "done": done.isoformat() if done else None,
        })

    # ─── Card Policies ───────────────────────────────────────────

    async def enable_card_policy_mode(self, board_id: int) -> None:
        await self._json(
            "PUT", f"/boards/{board_id}/card-policy/mode", json={"mode": "card_policy"},
        )

    async def set_card_policy(
        self, board_id: int, card_id: int, move: list[str], approve: list[str],
    ) -> None:
        await self._json(
            "PUT", f"/boards/{board_id}/card-policy/cards/{card_id}",
            json={"move": list(move), "approve": list(approve)},
        )

    async def get_policy_state(self, board_id: int) -> dict:
        data = await self._json("GET", f"/boards/{board_id}/card-policy")
        return data if isinstance(data, dict) else {}

    async def get_explicit_card_policies(self, board_id: int) -> dict[int, dict]:
        data = await self._json("GET", f"/boards/{board_id}/card-policy/cards") or []
        rows = data.values() if isinstance(data, dict) else data
        out: dict[int, dict] = {}
        for row in rows:
            card_id = int(row.get("cardId") or 0)
            if card_id <= 0:
                continue
            out[card_id] = {
                "move": _role_keys(row.get("move")),
                "approve": _role_keys(row.get("approve")),
                "view": _role_keys(row.get("view")),
            }
        return out
