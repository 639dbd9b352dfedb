"""Platform Protocols - contracts between services and the Nextcloud host platform.

Invariants:
    - Services NEVER import httpx gateways directly; they receive a Platform bundle
    - Every IO boundary method is async; failures surface as PlatformError
    - Paths passed to UserFiles are relative to the user's home, "/"-separated

Design Decisions:
    - Protocol over ABC: structural subtyping, in-memory fakes in tests need no base class
    - One protocol per host subsystem (groups, users, Deck, files, group folders)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from projectcreator.core.domain_types import (
    DeckLabel, DeckStack, FileEntry, PlatformUser,
)


class GroupDirectory(Protocol):
    """Host groups (OCS provisioning API)."""
    async def group_exists(self, gid: str) -> bool: ...
    async def create_group(self, gid: str) -> None: ...
    async def delete_group(self, gid: str) -> None: ...
    async def add_user(self, gid: str, user_id: str) -> None: ...
    async def remove_user(self, gid: str, user_id: str) -> None: ...
    async def is_in_group(self, user_id: str, gid: str) -> bool: ...
    async def list_user_groups(self, user_id: str) -> list[str]: ...
    async def list_members(self, gid: str) -> list[str]: ...


class UserDirectory(Protocol):
    """Host user accounts."""
    async def get_user(self, user_id: str) -> PlatformUser | None: ...


class DeckBoards(Protocol):
    """Deck boards, stacks, cards, labels and card policies."""
    async def create_board(self, title: str, color: str, owner_id: str) -> int: ...
    async def delete_board(self, board_id: int) -> None: ...
    async def share_with_group(
        self, board_id: int, gid: str,
        edit: bool, share: bool, manage: bool,
    ) -> None: ...
    async def list_stacks(self, board_id: int) -> list[DeckStack]: ...
    async def list_labels(self, board_id: int) -> list[DeckLabel]: ...
    async def create_label(self, board_id: int, title: str, color: str) -> int: ...
    async def create_card(
        self, board_id: int, stack_id: int, title: str, order: int,
    ) -> int: ...
    async def assign_label(
        self, board_id: int, stack_id: int, card_id: int, label_id: int,
    ) -> None: ...
    async def set_card_done(
        self, board_id: int, stack_id: int, card_id: int, done: datetime | None,
    ) -> None: ...
    async def enable_card_policy_mode(self, board_id: int) -> None: ...
    async def set_card_policy(
        self, board_id: int, card_id: int,
        move: list[str], approve: list[str],
    ) -> None: ...
    async def get_policy_state(self, board_id: int) -> dict: ...
    async def get_explicit_card_policies(self, board_id: int) -> dict[int, dict]: ...


class UserFiles(Protocol):
    """Per-user file tree (WebDAV)."""
    async def exists(self, user_id: str, path: str) -> bool: ...
    async def stat(self, user_id: str, path: str) -> FileEntry | None: ...
    async def list_folder(self, user_id: str, path: str) -> list[FileEntry]: ...
    async def create_folder(self, user_id: str, path: str) -> FileEntry: ...
    async def delete(self, user_id: str, path: str) -> None: ...
    async def read_text(self, user_id: str, path: str) -> str: ...
    async def write_text(self, user_id: str, path: str, content: str) -> FileEntry: ...


class GroupFolders(Protocol):
    """Admin-managed shared storage (groupfolders OCS API)."""
    async def create_folder(self, mount_point: str) -> int: ...
    async def remove_folder(self, folder_id: int) -> None: ...
    async def add_group(self, folder_id: int, gid: str) -> None: ...
    async def set_quota(self, folder_id: int, quota_bytes: int) -> None: ...
    async def set_permissions(self, folder_id: int, gid: str, permissions: int) -> None: ...


@dataclass
class Platform:
    """All host gateways a request may need, injected via api/deps.get_platform."""
    groups: GroupDirectory
    users: UserDirectory
    deck: DeckBoards
    files: UserFiles
    group_folders: GroupFolders
    admin_group: str = "admin"

    async def is_global_admin(self, user_id: str) -> bool:
        """Membership of the configured administrators group."""
        return await self.groups.is_in_group(user_id, self.admin_group)
