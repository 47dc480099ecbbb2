"""Health routes - System health and readiness checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pairstats.api.deps import get_db, get_repository
from pairstats.core.config import settings
from pairstats.schemas.api import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(response: Response, db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancer and Docker health checks.

    Checks database connectivity, the last batch run and the indexer checkpoint.
    Returns 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        response.status_code = 503
        return HealthResponse(database=f"down: {e}", last_batch_status=None)

    repository = get_repository(db)
    runs = repository.list_runs(limit=1)

    return HealthResponse(
        database="ok",
        last_batch_status=runs[0].status if runs else None,
        checkpoint=repository.get_checkpoint(settings.PROCESSOR_NAME),
    )


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)):
    """
    Kubernetes/ELB readiness probe - checks if service can serve traffic.

    Returns 200 if ready, 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
    except SQLAlchemyError as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e), "timestamp": datetime.now(timezone.utc).isoformat()}
