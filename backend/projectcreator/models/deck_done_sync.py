"""DeckDoneSync ORM - records which card done-dates this service set itself.

Invariants:
    - Unique (project_id, card_id)
    - managed_done == 1 only while the card's done date was set by done-sync
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from projectcreator.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeckDoneSync(Base):
    __tablename__ = "project_deck_done_sync"
    __table_args__ = (
        UniqueConstraint("project_id", "card_id", name="uq_deck_done_sync_card"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, nullable=False)
    card_id: Mapped[int] = mapped_column(Integer, nullable=False)
    managed_done: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
