"""End-to-end indexer service: batches in, flushed entity state and run records out."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pairstats.core.config import Settings, settings as default_settings
from pairstats.core.errors import FlushError
from pairstats.core.logging import batch_context, get_logger
from pairstats.ingestion.base import BlockSource
from pairstats.ingestion.decoder import LogDecoder
from pairstats.ingestion.jsonl_source import JsonLinesSource
from pairstats.ingestion.runner import IngestionRunner
from pairstats.models import BatchRun
from pairstats.repositories.base import EntityRepository
from pairstats.schemas.events import Batch
from pairstats.services.pipeline import BatchPipeline, BatchResult

log = get_logger("indexer_service")


class IndexerService:
    """Runs incremental, checkpointed indexing over a block source.

    Responsibilities:
    - Pull blocks newer than the checkpoint and decode them into batches
    - Run the aggregation pipeline per batch
    - Flush each batch atomically together with its checkpoint
    - Track batch runs for observability
    """

    def __init__(
        self,
        repository: EntityRepository,
        source: Optional[BlockSource] = None,
        settings: Settings = default_settings,
    ):
        self.repository = repository
        self.settings = settings
        self.source = source or JsonLinesSource(settings.EVENTS_PATH)
        self.pipeline = BatchPipeline(repository, settings)

    async def run(self) -> Dict[str, Any]:
        """Process every fresh block of the source, batch by batch."""
        checkpoint = self.repository.get_checkpoint(self.settings.PROCESSOR_NAME)
        log.info(f"Starting indexer {self.settings.PROCESSOR_NAME} | last_checkpoint={checkpoint}")

        runner = IngestionRunner(
            self.source,
            LogDecoder(self.settings.REGISTRY_ADDRESS),
            batch_blocks=self.settings.BATCH_BLOCKS,
            start_block=self.settings.START_BLOCK,
            end_block=self.settings.END_BLOCK,
        )
        batches = await runner.run(checkpoint)

        if not batches:
            log.info("No new blocks; checkpoint unchanged")
            return {"success": True, "batches": 0, "events_processed": 0, "checkpoint": checkpoint}

        processed = 0
        for batch in batches:
            result = self.run_batch(batch)
            processed += result.summary.processed
            checkpoint = result.changeset.checkpoint_height

        log.info(f"Indexer finished | batches={len(batches)} processed={processed} checkpoint={checkpoint}")
        return {"success": True, "batches": len(batches), "events_processed": processed, "checkpoint": checkpoint}

    def run_batch(self, batch: Batch) -> BatchResult:
        """Aggregate and flush one batch, recording its run."""
        with batch_context(self.settings.PROCESSOR_NAME, batch.from_block, batch.to_block):
            return self._run_batch(batch)

    def _run_batch(self, batch: Batch) -> BatchResult:
        run = BatchRun(
            run_id=uuid.uuid4(),
            processor_name=self.settings.PROCESSOR_NAME,
            status="running",
            from_block=batch.from_block,
            to_block=batch.to_block,
            events_processed=0,
            events_skipped=0,
            started_at=datetime.now(timezone.utc),
        )
        self.repository.record_run(run)

        try:
            result = self.pipeline.process(batch)
            self.repository.flush(result.changeset)
        except Exception as exc:
            run.status = "failure"
            run.error_message = str(exc)
            run.ended_at = datetime.now(timezone.utc)
            self.repository.record_run(run)
            if isinstance(exc, FlushError):
                log.error(f"Batch {batch.from_block}-{batch.to_block} not flushed, will be replayed: {exc}")
            else:
                log.error(f"Batch {batch.from_block}-{batch.to_block} failed: {exc}")
            raise

        summary = result.summary
        run.status = "success"
        run.events_processed = summary.processed
        run.events_skipped = summary.skipped
        run.meta = summary.model_dump(mode="json")
        run.ended_at = datetime.now(timezone.utc)
        self.repository.record_run(run)
        return result
