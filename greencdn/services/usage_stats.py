"""POD Power usage statistics: one event per generation, aggregated per user for admins."""

from typing import Literal

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from greencdn.models import UsageEvent, User

UsageFeature = Literal["variation", "mockup"]


def record_usage(db: Session, user_id: int, feature: UsageFeature) -> UsageEvent:
    event = UsageEvent(user_id=user_id, feature=feature)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def usage_by_user(db: Session) -> list[dict[str, str | int]]:
    """Per-user counts (variation, mockup, total), highest total first. Users without events are omitted."""
    variation = func.sum(case((UsageEvent.feature == "variation", 1), else_=0))
    mockup = func.sum(case((UsageEvent.feature == "mockup", 1), else_=0))
    total = func.count(UsageEvent.id)
    rows = (
        db.query(User.id, User.username, variation, mockup, total)
        .join(UsageEvent, UsageEvent.user_id == User.id)
        .group_by(User.id, User.username)
        .order_by(total.desc(), User.username.asc())
        .all()
    )
    return [
        {
            "user_id": user_id,
            "username": username,
            "variation_count": int(v or 0),
            "mockup_count": int(m or 0),
            "total_count": int(t or 0),
        }
        for user_id, username, v, m, t in rows
    ]
