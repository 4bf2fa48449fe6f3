"""ORM model for POD Power usage events (one row per generation request)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func

from greencdn.models.base import Base


class UsageEvent(Base):
    """feature: 'variation' or 'mockup'."""

    __tablename__ = "usage_events"
    __table_args__ = (
        CheckConstraint("feature IN ('variation', 'mockup')", name="ck_usage_events_feature"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    feature = Column(String(32), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
