"""Orchestration logic for block ingestion: fetch, decode, batch."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pairstats.core.errors import DecodeError
from pairstats.core.logging import get_logger
from pairstats.schemas.events import Batch, Block
from .base import BlockSource
from .decoder import LogDecoder

log = get_logger("ingestion.runner")


class IngestionRunner:
    """Turns a source's fresh blocks into ordered, decoded batches."""

    def __init__(
        self,
        source: BlockSource,
        decoder: LogDecoder,
        batch_blocks: int,
        start_block: int = 0,
        end_block: Optional[int] = None,
    ):
        if batch_blocks < 1:
            raise ValueError("batch_blocks must be >= 1")
        self.source = source
        self.decoder = decoder
        self.batch_blocks = batch_blocks
        self.start_block = start_block
        self.end_block = end_block

    async def run(self, checkpoint: Optional[int] = None) -> List[Batch]:
        raw = await self.source.fetch()
        fresh = self.source.filter_incremental(raw, checkpoint, self.start_block, self.end_block)
        fresh.sort(key=lambda blk: blk["height"])
        log.info(f"Source={self.source.name} fetched={len(raw)} fresh={len(fresh)} checkpoint={checkpoint}")

        batches: List[Batch] = []
        for start in range(0, len(fresh), self.batch_blocks):
            batches.append(self._decode_batch(fresh[start : start + self.batch_blocks]))
        return batches

    def _decode_batch(self, raw_blocks: List[Dict[str, Any]]) -> Batch:
        blocks: List[Block] = []
        skipped = 0
        for raw_block in raw_blocks:
            events = []
            for raw_log in raw_block["logs"]:
                try:
                    events.append(self.decoder.decode(raw_log))
                except DecodeError as exc:
                    skipped += 1
                    log.warning(f"Block {raw_block['height']}: {exc}")
            events.sort(key=lambda e: e.log_index)
            blocks.append(Block(height=raw_block["height"], timestamp=raw_block["timestamp"], events=tuple(events)))
        return Batch(blocks=tuple(blocks), skipped_decode=skipped)
