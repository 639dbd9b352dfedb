"""TimelineItem ORM - one Gantt bar or milestone of a project.

Invariants:
    - Unique (project_id, system_key); user items have system_key NULL
    - item_type in {"phase", "milestone"}
    - Listing order is (order_index, id)
"""

from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from projectcreator.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimelineItem(Base):
    __tablename__ = "project_timeline_items"
    __table_args__ = (
        UniqueConstraint("project_id", "system_key", name="uq_timeline_project_system_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("custom_projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="#3b82f6")
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    system_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    item_type: Mapped[str] = mapped_column(String(16), nullable=False, default="phase")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    @property
    def is_system(self) -> bool:
        return bool((self.system_key or "").strip())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "label": self.label,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "color": self.color,
            "orderIndex": self.order_index,
            "systemKey": self.system_key,
            "itemType": self.item_type,
            "createdAt": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
            "updatedAt": self.updated_at.strftime("%Y-%m-%d %H:%M:%S") if self.updated_at else None,
        }
