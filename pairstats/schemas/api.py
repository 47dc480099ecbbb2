from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    database: str
    last_batch_status: str | None
    checkpoint: int | None = None


class StatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    run_id: str
    processor_name: str
    status: str
    from_block: int | None = None
    to_block: int | None = None
    events_processed: int
    events_skipped: int
    error_message: str | None = None
    summary: Optional[dict[str, Any]] = None
    started_at: datetime
    ended_at: datetime | None


class CheckpointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    processor_name: str
    last_block_height: int
    updated_at: datetime | None


class IndexerTriggerResponse(BaseModel):
    success: bool
    batches: int
    events_processed: int
    checkpoint: int | None = None
    error: str | None = None
