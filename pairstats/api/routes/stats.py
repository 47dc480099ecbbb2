"""Stats routes - Batch run observability."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pairstats.api.deps import get_db, get_repository
from pairstats.schemas.api import CheckpointOut, StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=list[StatsResponse])
def get_batch_stats(
    status: Optional[str] = Query(None, description="Filter by status (running, success, failure)"),
    limit: int = Query(10, ge=1, le=50, description="Number of runs to return"),
    db: Session = Depends(get_db),
):
    """
    Get recent batch run statistics.

    Shows block range, processed/skipped counts, duration, status and errors.
    """
    runs = get_repository(db).list_runs(limit=limit, status=status)

    return [
        StatsResponse(
            run_id=str(run.run_id),
            processor_name=run.processor_name,
            status=run.status,
            from_block=run.from_block,
            to_block=run.to_block,
            events_processed=run.events_processed,
            events_skipped=run.events_skipped,
            error_message=run.error_message,
            summary=run.meta,
            started_at=run.started_at,
            ended_at=run.ended_at,
        )
        for run in runs
    ]


@router.get("/checkpoints", response_model=list[CheckpointOut])
def get_checkpoints(db: Session = Depends(get_db)):
    """
    Get all indexer checkpoints.

    A checkpoint is the last block whose batch was fully flushed.
    """
    return [CheckpointOut.model_validate(cp) for cp in get_repository(db).list_checkpoints()]
