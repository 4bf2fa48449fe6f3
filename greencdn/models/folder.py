"""ORM models for folders and the folder <-> user assignment relation."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from greencdn.models.base import Base


class Folder(Base):
    """A named container of images. Created and deleted by admins only."""

    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class FolderAssignment(Base):
    """Grants a member access to a folder. The (user_id, folder_id) pair is the key."""

    __tablename__ = "folder_assignments"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    folder_id = Column(
        Integer,
        ForeignKey("folders.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
