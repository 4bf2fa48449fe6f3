"""SQLAlchemy ORM models."""

from greencdn.models.base import Base
from greencdn.models.folder import Folder, FolderAssignment
from greencdn.models.image import Image
from greencdn.models.usage import UsageEvent
from greencdn.models.user import Role, User

__all__ = ["Base", "Folder", "FolderAssignment", "Image", "Role", "UsageEvent", "User"]
