"""DeckPermissionTemplate ORM - a named snapshot of a board's card-policy setup.

Invariants:
    - Unique (organization_id, name)
    - template_json is the serialized version-1 payload (see services/deck_template_service.py)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from projectcreator.db.base import Base


class DeckPermissionTemplate(Base):
    __tablename__ = "pc_deck_perm_tpl"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_deck_perm_tpl_org_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    template_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "name": self.name,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
