"""Domain Types - value objects and enums shared by core, services and gateways.

Invariants:
    - Platform snapshots (users, stacks, cards, file entries) are frozen dataclasses
    - All valid states encoded as str Enums; no raw string matching in services
    - Deck dates are timezone-aware datetimes or None

Design Decisions:
    - NewType for ids: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ProjectId = NewType("ProjectId", int)
BoardId = NewType("BoardId", int)
OrganizationId = NewType("OrganizationId", int)
GroupId = NewType("GroupId", str)


# ─── Enums ───────────────────────────────────────────────────────

class OrganizationRole(str, Enum):
    """Role inside an organization (organization_members.role)."""
    ADMIN = "admin"
    MEMBER = "member"


class TimelineItemType(str, Enum):
    """Gantt item kinds. Milestones have end == start."""
    PHASE = "phase"
    MILESTONE = "milestone"


class NoteVisibility(str, Enum):
    """Database note visibility."""
    PUBLIC = "public"
    PRIVATE = "private"


class ProcessStatus(str, Enum):
    """processCompleted.status values of the scheduling summary."""
    NOT_CONFIGURED = "not_configured"
    MISSING_CARDS = "missing_cards"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    ERROR = "error"


class PermissionMode(str, Enum):
    """Deck board permission modes."""
    LEGACY = "legacy"
    CARD_POLICY = "card_policy"


# ─── Caller / Tenant ─────────────────────────────────────────────

@dataclass(frozen=True)
class Membership:
    """A user's single organization membership."""
    organization_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == OrganizationRole.ADMIN.value


@dataclass(frozen=True)
class Caller:
    """Authenticated request user, resolved once per request."""
    user_id: str
    is_global_admin: bool
    membership: Membership | None = None

    @property
    def organization_id(self) -> int | None:
        return self.membership.organization_id if self.membership else None

    @property
    def is_org_admin(self) -> bool:
        return self.membership is not None and self.membership.is_admin


@dataclass(frozen=True)
class PlanLimits:
    """Effective quota for an organization."""
    max_projects: int
    max_members: int | None = None
    shared_storage_bytes: int | None = None


# ─── Platform Snapshots ──────────────────────────────────────────

@dataclass(frozen=True)
class PlatformUser:
    """Nextcloud account as seen through the provisioning API."""
    uid: str
    display_name: str = ""
    email: str = ""


@dataclass(frozen=True)
class DeckCard:
    """Deck card with the fields used by planning, done-sync and templates."""
    id: int
    title: str
    stack_id: int
    order: int = 0
    description: str = ""
    done: datetime | None = None
    last_modified: int = 0
    archived: bool = False


@dataclass(frozen=True)
class DeckStack:
    """Deck stack (column) with its non-deleted cards."""
    id: int
    title: str
    order: int
    cards: tuple[DeckCard, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeckLabel:
    id: int
    title: str
    color: str = ""


@dataclass(frozen=True)
class FileEntry:
    """One WebDAV node, path relative to the user's home."""
    path: str
    name: str
    is_dir: bool
    size: int = 0
    mtime: int = 0
    file_id: int = 0


@dataclass(frozen=True)
class CreatedFolder:
    """Folder created during provisioning; kept for compensation."""
    user_id: str
    path: str
    file_id: int
