"""Project ORM - the business object tying a group, board, folders and whiteboard together.

Invariants:
    - board_id stored as string (Deck ids are opaque to this service)
    - project_group_gid is indexed; membership checks go through the host group
    - cv_* columns hold questionnaire answers (option values or show groups 0/1/2)
    - status defaults to 0

Design Decisions:
    - to_dict() keeps the historical wire shape: snake_case client/location keys,
      camelCase system keys (ownerId, boardId, folderId, ...)
    - private folder links, timeline items and notes cascade on delete
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projectcreator.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "custom_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    number: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    type: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_role: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    loc_street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    loc_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    loc_zip: Mapped[str | None] = mapped_column(String(32), nullable=True)
    external_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    board_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    project_group_gid: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True,
    )
    folder_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    folder_path: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    white_board_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    organization_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    required_preparation_weeks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cv_object_ownership: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cv_trace_ownership: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cv_building_type: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cv_avp_location: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    private_folders: Mapped[list["PrivateFolderLink"]] = relationship(
        "PrivateFolderLink", back_populates="project",
        cascade="all, delete-orphan", lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "label": self.name,
            "number": self.number,
            "type": self.type,
            "description": self.description,
            "client_name": self.client_name,
            "client_role": self.client_role,
            "client_phone": self.client_phone,
            "client_email": self.client_email,
            "client_address": self.client_address,
            "loc_street": self.loc_street,
            "loc_city": self.loc_city,
            "loc_zip": self.loc_zip,
            "external_ref": self.external_ref,
            "ownerId": self.owner_id,
            "projectGroupGid": self.project_group_gid,
            "boardId": self.board_id,
            "folderId": self.folder_id,
            "folderPath": self.folder_path,
            "whiteBoardId": self.white_board_id,
            "status": self.status,
            "organization_id": self.organization_id,
            "requiredPreparationWeeks": self.required_preparation_weeks,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
