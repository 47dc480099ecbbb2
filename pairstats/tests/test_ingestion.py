"""Decoder, JSON-lines source and ingestion runner tests"""

import json

import pytest

from pairstats.core.errors import DecodeError
from pairstats.ingestion.base import BlockSource
from pairstats.ingestion.decoder import LogDecoder
from pairstats.ingestion.jsonl_source import JsonLinesSource
from pairstats.ingestion.runner import IngestionRunner
from pairstats.schemas import events as ev
from pairstats.tests.factories import (
    E18,
    PAIR_WETH_A,
    REGISTRY,
    TOKEN_A,
    WETH,
    raw_log,
    registered,
    swap,
    sync,
    tx,
)


class StaticSource(BlockSource):
    """Source returning a fixed list of raw blocks"""

    name = "static"

    def __init__(self, blocks):
        self.blocks = blocks

    async def fetch(self):
        return [dict(blk) for blk in self.blocks]


class TestLogDecoder:
    @pytest.fixture
    def decoder(self):
        return LogDecoder(REGISTRY)

    def test_decodes_every_variant(self, decoder):
        for event in (
            registered(PAIR_WETH_A, WETH, TOKEN_A, n=1),
            sync(PAIR_WETH_A, E18, E18, n=2),
            swap(PAIR_WETH_A, n=3, amount0_in=E18),
        ):
            assert decoder.decode(raw_log(event)) == event

    def test_normalizes_address_case(self, decoder):
        raw = raw_log(sync(PAIR_WETH_A, 1, 2, n=2))
        raw["address"] = "0x" + raw["address"][2:].upper()
        assert decoder.decode(raw).address == PAIR_WETH_A

    def test_stage_follows_variant(self, decoder):
        assert decoder.decode(raw_log(registered(PAIR_WETH_A, WETH, TOKEN_A, n=1))).stage is ev.PipelineStage.REGISTRATION
        assert decoder.decode(raw_log(sync(PAIR_WETH_A, 1, 2, n=2))).stage is ev.PipelineStage.APPLICATION

    @pytest.mark.parametrize(
        "mutation",
        [
            {"kind": "approval"},
            {"reserve0": -1},
            {"address": "0x1234"},
            {"transaction_hash": "not-a-hash"},
        ],
    )
    def test_malformed_log_raises_decode_error(self, decoder, mutation):
        raw = raw_log(sync(PAIR_WETH_A, 1, 2, n=2))
        raw.update(mutation)
        with pytest.raises(DecodeError) as info:
            decoder.decode(raw)
        assert info.value.raw == raw

    def test_registration_from_other_contract_rejected(self, decoder):
        raw = raw_log(registered(PAIR_WETH_A, WETH, TOKEN_A, n=1))
        raw["address"] = "0x" + "7" * 40
        with pytest.raises(DecodeError):
            decoder.decode(raw)


class TestJsonLinesSource:
    @pytest.mark.asyncio
    async def test_reads_blocks_and_skips_bad_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        lines = [
            json.dumps({"height": 1, "timestamp": 100, "logs": [raw_log(sync(PAIR_WETH_A, 1, 2, n=1))]}),
            "{not json",
            json.dumps({"timestamp": 100}),
            "",
            json.dumps({"height": "2", "timestamp": 200}),
        ]
        path.write_text("\n".join(lines), encoding="utf-8")

        blocks = await JsonLinesSource(str(path)).fetch()

        assert [blk["height"] for blk in blocks] == [1, 2]
        assert len(blocks[0]["logs"]) == 1
        assert blocks[1]["logs"] == []

    @pytest.mark.asyncio
    async def test_missing_file_yields_nothing(self, tmp_path):
        assert await JsonLinesSource(str(tmp_path / "missing.jsonl")).fetch() == []


class TestIngestionRunner:
    def make_blocks(self):
        return [
            {"height": 12, "timestamp": 1200, "logs": [raw_log(sync(PAIR_WETH_A, 3, 4, n=12))]},
            {"height": 10, "timestamp": 1000, "logs": [raw_log(registered(PAIR_WETH_A, WETH, TOKEN_A, n=10))]},
            {
                "height": 11,
                "timestamp": 1100,
                "logs": [
                    raw_log(swap(PAIR_WETH_A, n=11, amount0_in=1, log_index=5)),
                    {"kind": "sync", "address": "garbage"},
                    raw_log(sync(PAIR_WETH_A, 1, 2, n=11, log_index=1)),
                ],
            },
            {"height": 13, "timestamp": 1300, "logs": []},
        ]

    @pytest.mark.asyncio
    async def test_batches_are_ordered_and_decoded(self):
        runner = IngestionRunner(StaticSource(self.make_blocks()), LogDecoder(REGISTRY), batch_blocks=2)
        batches = await runner.run()

        assert [[b.height for b in bt.blocks] for bt in batches] == [[10, 11], [12, 13]]
        assert batches[0].skipped_decode == 1
        assert batches[1].skipped_decode == 0
        # events within a block in log-index order
        assert [e.log_index for e in batches[0].blocks[1].events] == [1, 5]
        assert batches[0].blocks[1].events[0].transaction_hash == tx(11)

    @pytest.mark.asyncio
    async def test_checkpoint_and_range_filtering(self):
        runner = IngestionRunner(
            StaticSource(self.make_blocks()), LogDecoder(REGISTRY), batch_blocks=10, start_block=11, end_block=12
        )
        assert [b.height for b in (await runner.run())[0].blocks] == [11, 12]
        assert [b.height for b in (await runner.run(checkpoint=11))[0].blocks] == [12]
        assert await runner.run(checkpoint=12) == []

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            IngestionRunner(StaticSource([]), LogDecoder(REGISTRY), batch_blocks=0)
