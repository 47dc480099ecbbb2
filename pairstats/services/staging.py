"""Batch-scoped working set over the persistent store.

One ``StagingStore`` lives for exactly one batch. It bulk-loads the entities
the batch references, hands out the single mutable copy of each, and turns
the result into a ``Changeset``. Discarding it discards every change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from pairstats.core.config import Settings
from pairstats.core.logging import get_logger
from pairstats.models import (
    REFERENCE_RATE_ID,
    Activity,
    Asset,
    Burn,
    Mint,
    Pair,
    ReferenceRate,
    Registry,
    Swap,
)
from pairstats.repositories.base import Changeset, EntityRepository
from pairstats.schemas import events as ev
from pairstats.services.pricing import AssetClassifier

log = get_logger("services.staging")


class StagingStore:
    def __init__(self, repository: EntityRepository, settings: Settings, classifier: AssetClassifier):
        self.repository = repository
        self.settings = settings
        self.classifier = classifier

        self._assets: Dict[str, Asset] = {}
        self._pairs: Dict[str, Pair] = {}
        self._pair_order: Optional[List[str]] = None
        self._known_activity_ids: Set[str] = set()
        self._activities: Dict[str, Activity] = {}
        self._mints: List[Mint] = []
        self._burns: List[Burn] = []
        self._swaps: List[Swap] = []
        self._registry: Optional[Registry] = None
        self._reference_rate: Optional[ReferenceRate] = None
        # reserve totals as persisted before this batch, for registry deltas
        self._baseline: Dict[str, Tuple[Decimal, Decimal]] = {}

    # -------------------------------------------------------------------------
    # Bulk load
    # -------------------------------------------------------------------------
    def load(self, batch: ev.Batch) -> None:
        """Read every entity the batch can touch, one bounded query per kind."""
        pair_ids: Set[str] = set()
        asset_ids: Set[str] = {self.classifier.reference, *self.classifier.stables}
        tx_hashes: Set[str] = set()

        for block in batch.blocks:
            for event in block.events:
                if isinstance(event, ev.PairRegistered):
                    pair_ids.add(event.pair)
                    asset_ids.update((event.token0, event.token1))
                else:
                    pair_ids.add(event.address)
                    tx_hashes.add(event.transaction_hash)

        for pair in self.repository.find_pairs(pair_ids):
            self._stage_pair(pair)
            asset_ids.update((pair.token0_id, pair.token1_id))

        # pricing pairs: reference-asset pairs of every other staged asset
        partners = asset_ids - {self.classifier.reference}
        for pair in self.repository.find_pricing_pairs(self.classifier.reference, partners):
            if pair.id not in self._pairs:
                self._stage_pair(pair)

        for asset in self.repository.find_assets(asset_ids):
            self._assets[asset.id] = asset

        self._known_activity_ids = self.repository.find_activity_ids(tx_hashes)

        log.debug(
            f"Staged {len(self._pairs)} pairs, {len(self._assets)} assets, "
            f"{len(self._known_activity_ids)} known activities"
        )

    def _stage_pair(self, pair: Pair) -> None:
        self._pairs[pair.id] = pair
        self._pair_order = None
        self._baseline[pair.id] = (pair.reserve_ref, pair.reserve_usd)

    # -------------------------------------------------------------------------
    # Entity access
    # -------------------------------------------------------------------------
    def get_pair(self, pair_id: str) -> Optional[Pair]:
        return self._pairs.get(pair_id)

    def add_pair(self, pair: Pair) -> None:
        self._pairs[pair.id] = pair
        self._pair_order = None

    def pairs(self) -> List[Pair]:
        """Staged pairs in ascending key order (deterministic scan order)."""
        if self._pair_order is None:
            self._pair_order = sorted(self._pairs)
        return [self._pairs[key] for key in self._pair_order]

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def add_asset(self, asset: Asset) -> None:
        self._assets[asset.id] = asset

    def assets(self) -> List[Asset]:
        return [self._assets[key] for key in sorted(self._assets)]

    def baseline(self, pair_id: str) -> Tuple[Decimal, Decimal]:
        """(reserve_ref, reserve_usd) of a pair before this batch; zeros for new pairs."""
        return self._baseline.get(pair_id, (Decimal(0), Decimal(0)))

    @property
    def registry(self) -> Registry:
        if self._registry is None:
            self._registry = self.repository.get_registry(self.settings.REGISTRY_ADDRESS)
            if self._registry is None:
                log.info(f"Creating registry {self.settings.REGISTRY_ADDRESS}")
                self._registry = Registry.new(self.settings.REGISTRY_ADDRESS)
        return self._registry

    @property
    def reference_rate(self) -> ReferenceRate:
        if self._reference_rate is None:
            self._reference_rate = self.repository.get_reference_rate(REFERENCE_RATE_ID)
            if self._reference_rate is None:
                log.info(f"Creating reference rate with fallback {self.settings.FALLBACK_FIAT_RATE}")
                self._reference_rate = ReferenceRate.new(self.settings.FALLBACK_FIAT_RATE)
        return self._reference_rate

    # -------------------------------------------------------------------------
    # Append-only records
    # -------------------------------------------------------------------------
    def get_or_create_activity(self, transaction_hash: str, block_number: int, timestamp: int) -> str:
        """Stage the activity record for a transaction unless it already exists."""
        if transaction_hash not in self._known_activity_ids and transaction_hash not in self._activities:
            self._activities[transaction_hash] = Activity(
                id=transaction_hash,
                block_number=block_number,
                timestamp=timestamp,
            )
        return transaction_hash

    def append(self, record: Mint | Burn | Swap) -> None:
        if isinstance(record, Mint):
            self._mints.append(record)
        elif isinstance(record, Burn):
            self._burns.append(record)
        else:
            self._swaps.append(record)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------
    def changeset(self, checkpoint_height: Optional[int]) -> Changeset:
        return Changeset(
            processor_name=self.settings.PROCESSOR_NAME,
            checkpoint_height=checkpoint_height,
            reference_rate=self.reference_rate,
            registry=self.registry,
            assets=self.assets(),
            pairs=self.pairs(),
            activities=list(self._activities.values()),
            mints=list(self._mints),
            burns=list(self._burns),
            swaps=list(self._swaps),
        )
