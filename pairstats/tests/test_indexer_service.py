"""Indexer service tests: checkpointing, run records and failure handling"""

import pytest

from pairstats.core.errors import FlushError
from pairstats.ingestion.base import BlockSource
from pairstats.repositories.memory import InMemoryRepository
from pairstats.services.indexer_service import IndexerService
from pairstats.tests.factories import (
    E18,
    PAIR_WETH_A,
    TOKEN_A,
    WETH,
    make_settings,
    raw_log,
    registered,
    swap,
    sync,
)


class ListSource(BlockSource):
    """Source over a mutable list of raw blocks"""

    name = "list"

    def __init__(self):
        self.blocks = []

    async def fetch(self):
        return list(self.blocks)


class FailingFlushRepository(InMemoryRepository):
    def flush(self, changeset):
        raise FlushError("database unavailable")


def raw_block(height, *events):
    return {"height": height, "timestamp": 1_600_000_000 + height, "logs": [raw_log(e) for e in events]}


@pytest.fixture
def settings():
    return make_settings(START_BLOCK=100, BATCH_BLOCKS=2)


@pytest.fixture
def source():
    source = ListSource()
    source.blocks = [
        raw_block(100, registered(PAIR_WETH_A, WETH, TOKEN_A, n=1)),
        raw_block(101, sync(PAIR_WETH_A, 1000 * E18, 2 * E18, n=2)),
        raw_block(102, swap(PAIR_WETH_A, n=3, amount0_in=E18), {"kind": "mystery"}),
        # before the start block: never indexed
        raw_block(50, sync(PAIR_WETH_A, 1, 1, n=4)),
    ]
    return source


class TestIndexerService:
    @pytest.mark.asyncio
    async def test_runs_batches_and_advances_checkpoint(self, settings, source):
        repository = InMemoryRepository()
        result = await IndexerService(repository, source=source, settings=settings).run()

        assert result == {"success": True, "batches": 2, "events_processed": 3, "checkpoint": 102}
        assert repository.get_checkpoint("pairstats") == 102
        assert repository.flush_count == 2

        runs = repository.list_runs()
        assert [r.status for r in runs] == ["success", "success"]
        last = max(runs, key=lambda r: r.to_block)
        assert (last.from_block, last.to_block) == (102, 102)
        assert last.events_processed == 1
        assert last.events_skipped == 1
        assert last.meta["swaps"] == 1
        assert last.meta["skipped_decode"] == 1

    @pytest.mark.asyncio
    async def test_second_run_only_sees_new_blocks(self, settings, source):
        repository = InMemoryRepository()
        service = IndexerService(repository, source=source, settings=settings)
        await service.run()

        idle = await service.run()
        assert idle["batches"] == 0
        assert idle["checkpoint"] == 102

        source.blocks.append(raw_block(103, swap(PAIR_WETH_A, n=5, amount1_in=E18)))
        result = await service.run()
        assert result["batches"] == 1
        assert repository.get_checkpoint("pairstats") == 103
        assert repository.pairs[PAIR_WETH_A].tx_count == 2

    @pytest.mark.asyncio
    async def test_flush_failure_records_run_and_keeps_checkpoint(self, settings, source):
        repository = FailingFlushRepository()
        service = IndexerService(repository, source=source, settings=settings)

        with pytest.raises(FlushError):
            await service.run()

        assert repository.get_checkpoint("pairstats") is None
        [run] = repository.list_runs()
        assert run.status == "failure"
        assert run.error_message == "database unavailable"
        assert run.ended_at is not None
        assert repository.pairs == {}
