"""Health check endpoint with optional database connectivity check."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from scribe.core.config import settings
from scribe.core.database import check_db_connected, get_db
from scribe.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(request: Request, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health status, database connectivity and the number of
    live notification channels. Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        live_connections=request.app.state.channels.connection_count(),
    )
