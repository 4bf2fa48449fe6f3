"""ORM model for image metadata. The blob itself lives in the blob store."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from greencdn.models.base import Base


class Image(Base):
    """
    Uploaded or imported image.

    url is the only handle to the stored object; the storage key is the URL path.
    """

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(1024), nullable=False)
    url = Column(String(2048), nullable=False)
    folder_id = Column(
        Integer,
        ForeignKey("folders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploaded_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
