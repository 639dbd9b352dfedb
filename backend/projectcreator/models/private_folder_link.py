"""PrivateFolderLink ORM - one private folder per (project, user).

Invariants:
    - Unique (project_id, user_id)
    - folder_path is relative to the user's home; folder_id is the WebDAV file id
"""

from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projectcreator.db.base import Base


class PrivateFolderLink(Base):
    __tablename__ = "proj_private_folders"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_proj_private_folder_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("custom_projects.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    folder_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    folder_path: Mapped[str] = mapped_column(String(4000), nullable=False, default="")

    project: Mapped["Project"] = relationship("Project", back_populates="private_folders")
