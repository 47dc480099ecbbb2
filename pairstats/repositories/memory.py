"""Dict-backed repository for dry runs and tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Collection, Dict, List, Optional, Set
from uuid import UUID

from pairstats.core.errors import FlushError
from pairstats.models import (
    Activity,
    Asset,
    BatchRun,
    Burn,
    IndexerCheckpoint,
    Mint,
    Pair,
    ReferenceRate,
    Registry,
    Swap,
)
from pairstats.models.base import detached_copy
from pairstats.repositories.base import Changeset, EntityRepository


class InMemoryRepository(EntityRepository):
    def __init__(self) -> None:
        self.assets: Dict[str, Asset] = {}
        self.pairs: Dict[str, Pair] = {}
        self.registries: Dict[str, Registry] = {}
        self.reference_rates: Dict[str, ReferenceRate] = {}
        self.activities: Dict[str, Activity] = {}
        self.mints: Dict[str, Mint] = {}
        self.burns: Dict[str, Burn] = {}
        self.swaps: Dict[str, Swap] = {}
        self.checkpoints: Dict[str, IndexerCheckpoint] = {}
        self.runs: Dict[UUID, BatchRun] = {}
        self.flush_count = 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def find_pairs(self, ids: Collection[str]) -> List[Pair]:
        return [detached_copy(self.pairs[i]) for i in sorted(set(ids)) if i in self.pairs]

    def find_assets(self, ids: Collection[str]) -> List[Asset]:
        return [detached_copy(self.assets[i]) for i in sorted(set(ids)) if i in self.assets]

    def find_activity_ids(self, ids: Collection[str]) -> Set[str]:
        return {i for i in ids if i in self.activities}

    def find_pricing_pairs(self, reference_id: str, partner_ids: Collection[str]) -> List[Pair]:
        partners = set(partner_ids)
        found = [
            pair
            for pair in self.pairs.values()
            if (pair.token0_id == reference_id and pair.token1_id in partners)
            or (pair.token1_id == reference_id and pair.token0_id in partners)
        ]
        return [detached_copy(pair) for pair in sorted(found, key=lambda p: p.id)]

    def get_registry(self, registry_id: str) -> Optional[Registry]:
        found = self.registries.get(registry_id)
        return detached_copy(found) if found else None

    def get_reference_rate(self, rate_id: str) -> Optional[ReferenceRate]:
        found = self.reference_rates.get(rate_id)
        return detached_copy(found) if found else None

    def get_checkpoint(self, processor_name: str) -> Optional[int]:
        found = self.checkpoints.get(processor_name)
        return found.last_block_height if found else None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def flush(self, changeset: Changeset) -> None:
        # validate everything before touching state so a rejected flush changes nothing
        for records, table in (
            (changeset.activities, self.activities),
            (changeset.mints, self.mints),
            (changeset.burns, self.burns),
            (changeset.swaps, self.swaps),
        ):
            seen: Set[str] = set()
            for record in records:
                if record.id in table or record.id in seen:
                    raise FlushError(f"duplicate {type(record).__name__} id {record.id}")
                seen.add(record.id)

        if changeset.reference_rate is not None:
            self.reference_rates[changeset.reference_rate.id] = detached_copy(changeset.reference_rate)
        if changeset.registry is not None:
            self.registries[changeset.registry.id] = detached_copy(changeset.registry)
        for asset in changeset.assets:
            self.assets[asset.id] = detached_copy(asset)
        for pair in changeset.pairs:
            self.pairs[pair.id] = detached_copy(pair)
        for records, table in (
            (changeset.activities, self.activities),
            (changeset.mints, self.mints),
            (changeset.burns, self.burns),
            (changeset.swaps, self.swaps),
        ):
            for record in records:
                table[record.id] = detached_copy(record)

        if changeset.checkpoint_height is not None:
            self.checkpoints[changeset.processor_name] = IndexerCheckpoint(
                processor_name=changeset.processor_name,
                last_block_height=changeset.checkpoint_height,
                updated_at=datetime.now(timezone.utc),
            )
        self.flush_count += 1

    def record_run(self, run: BatchRun) -> None:
        self.runs[run.run_id] = detached_copy(run)

    def list_runs(self, limit: int = 10, status: Optional[str] = None) -> List[BatchRun]:
        runs = [run for run in self.runs.values() if status is None or run.status == status]
        runs.sort(key=lambda run: run.started_at, reverse=True)
        return runs[:limit]

    def list_checkpoints(self) -> List[IndexerCheckpoint]:
        return list(self.checkpoints.values())
