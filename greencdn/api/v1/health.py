"""Health check endpoint: database connectivity and the configured blob backend."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from greencdn.core.config import settings
from greencdn.core.database import check_db_connected, get_db
from greencdn.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Return service health status, database connectivity and blob backend.
    Used by load balancers and monitoring. No authentication.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        blob_backend=settings.BLOB_BACKEND,
    )
