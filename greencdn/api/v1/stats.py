"""POD Power usage statistics: record a generation, and the per-user summary for admins."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from greencdn.api.v1.auth import ensure_allowed, get_current_user
from greencdn.core.database import get_db
from greencdn.schemas.auth import CurrentUser
from greencdn.schemas.stats import RecordUsageRequest, UsageStatsResponse, UserUsageStats
from greencdn.services import usage_stats
from greencdn.services.policy import Action

router = APIRouter()


@router.post("/record", status_code=status.HTTP_201_CREATED)
def record_usage(
    body: RecordUsageRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, str]:
    """Record one use of a POD Power feature by the caller (for client-side generations)."""
    ensure_allowed(db, current_user, Action.RECORD_USAGE)
    usage_stats.record_usage(db, current_user.id, body.feature)
    return {"message": "Usage recorded"}


@router.get("", response_model=UsageStatsResponse)
def get_usage_stats(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UsageStatsResponse:
    """Per-user variation/mockup counts, highest total first (admin only)."""
    ensure_allowed(db, current_user, Action.VIEW_USAGE_STATS)
    return UsageStatsResponse(
        stats=[UserUsageStats.model_validate(row) for row in usage_stats.usage_by_user(db)]
    )
