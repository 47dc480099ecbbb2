"""Indexer routes - Trigger an indexing run."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pairstats.api.deps import get_db, get_repository
from pairstats.core.errors import PairStatsError
from pairstats.core.logging import get_logger
from pairstats.schemas.api import IndexerTriggerResponse
from pairstats.services.indexer_service import IndexerService

router = APIRouter(prefix="/indexer", tags=["indexer"])
log = get_logger("indexer_routes")


@router.post("/run", response_model=IndexerTriggerResponse)
async def trigger_indexer(db: Session = Depends(get_db)):
    """
    Run the indexer once against the configured event source.

    Every fresh batch is aggregated and flushed together with its checkpoint.
    A failed batch stops the run; earlier batches stay flushed.
    """
    log.info("Indexer run triggered")

    try:
        result = await IndexerService(get_repository(db)).run()
    except PairStatsError as exc:
        log.error(f"Indexer run failed: {exc}")
        return IndexerTriggerResponse(success=False, batches=0, events_processed=0, error=str(exc))

    return IndexerTriggerResponse(**result)
