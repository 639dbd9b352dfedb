"""ORM Models - SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Project is the aggregate root for links, timeline items and notes

Design Decisions:
    - One file per entity for locality
    - All models imported here so string-based relationship() references resolve
      before any query runs
"""

from projectcreator.models.project import Project  # noqa: F401
from projectcreator.models.private_folder_link import PrivateFolderLink  # noqa: F401
from projectcreator.models.timeline_item import TimelineItem  # noqa: F401
from projectcreator.models.project_note import ProjectNote  # noqa: F401
from projectcreator.models.deck_permission_template import DeckPermissionTemplate  # noqa: F401
from projectcreator.models.deck_done_sync import DeckDoneSync  # noqa: F401
from projectcreator.models.organization import (  # noqa: F401
    Organization, OrganizationMember, Plan, Subscription,
)
