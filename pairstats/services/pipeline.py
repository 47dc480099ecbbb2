"""Batch aggregation: folds one ordered batch of decoded events into entity state.

Events run in two stages. ``REGISTRATION`` creates pairs and assets, so that
``APPLICATION`` (sync/mint/burn/swap) can rely on them even when both happen
in the same batch. When any reserves changed, a reconciliation step re-derives
the reference rate, every staged asset price and every staged pair's reserve
totals from the final reserves, then moves the registry liquidity by the
change of each staged pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Optional

from pydantic import BaseModel

from pairstats.core.config import Settings, settings as default_settings
from pairstats.core.decimals import DECIMAL_CONTEXT, ONE, TWO, ZERO, safe_div, to_scaled
from pairstats.core.errors import BatchOrderError
from pairstats.core.logging import get_logger
from pairstats.models import Asset, Burn, Mint, Pair, Swap, event_id
from pairstats.repositories.base import Changeset, EntityRepository
from pairstats.schemas import events as ev
from pairstats.services.asset_metadata import resolve_metadata
from pairstats.services.oracle import PriceOracle
from pairstats.services.pricing import AssetClassifier, tracked_liquidity, tracked_volume
from pairstats.services.staging import StagingStore

log = get_logger("services.pipeline")


class BatchSummary(BaseModel):
    """Processed vs. skipped counts for one batch."""

    from_block: Optional[int] = None
    to_block: Optional[int] = None

    events_total: int = 0
    processed: int = 0
    skipped_decode: int = 0
    skipped_unknown_pair: int = 0
    skipped_missing_asset: int = 0
    skipped_duplicate_registration: int = 0

    pairs_created: int = 0
    assets_created: int = 0
    syncs: int = 0
    mints: int = 0
    burns: int = 0
    swaps: int = 0

    reference_rate: Optional[Decimal] = None

    @property
    def skipped(self) -> int:
        return (
            self.skipped_decode
            + self.skipped_unknown_pair
            + self.skipped_missing_asset
            + self.skipped_duplicate_registration
        )


@dataclass
class BatchResult:
    changeset: Changeset
    summary: BatchSummary


class BatchPipeline:
    """Turns a batch into a changeset. Holds no state between batches."""

    def __init__(self, repository: EntityRepository, settings: Settings = default_settings):
        self.repository = repository
        self.settings = settings
        self.classifier = AssetClassifier.from_settings(settings)

    def process(self, batch: ev.Batch) -> BatchResult:
        _check_order(batch)

        with localcontext(DECIMAL_CONTEXT):
            aggregation = _BatchAggregation(self.repository, self.settings, self.classifier, batch)
            aggregation.run()

        summary = aggregation.summary
        registry = aggregation.store.registry
        log.info(
            f"Blocks {summary.from_block}-{summary.to_block}: {summary.pairs_created} new pairs, "
            f"{summary.swaps} swaps, {summary.mints} mints, {summary.burns} burns, {summary.syncs} syncs | "
            f"processed={summary.processed} skipped={summary.skipped}"
        )
        log.info(
            f"Total: {registry.pair_count} pairs, ${registry.total_volume_usd:.0f} volume, "
            f"reference price: ${aggregation.store.reference_rate.ref_price_usd:.2f}"
        )
        return BatchResult(changeset=aggregation.store.changeset(batch.to_block), summary=summary)


def _check_order(batch: ev.Batch) -> None:
    previous: Optional[int] = None
    for block in batch.blocks:
        if previous is not None and block.height <= previous:
            raise BatchOrderError(f"Block {block.height} delivered after block {previous}")
        previous = block.height


class _BatchAggregation:
    """Mutable state of one batch run: staging store, oracle and counters."""

    def __init__(
        self,
        repository: EntityRepository,
        settings: Settings,
        classifier: AssetClassifier,
        batch: ev.Batch,
    ):
        self.settings = settings
        self.classifier = classifier
        self.batch = batch
        self.store = StagingStore(repository, settings, classifier)
        self.oracle = PriceOracle(self.store, classifier, settings.FALLBACK_FIAT_RATE)
        self.summary = BatchSummary(
            from_block=batch.from_block,
            to_block=batch.to_block,
            events_total=sum(len(block.events) for block in batch.blocks),
            skipped_decode=batch.skipped_decode,
        )

    def run(self) -> None:
        self.store.load(self.batch)

        for stage in ev.PipelineStage:
            for block in self.batch.blocks:
                for event in sorted(block.events, key=lambda e: e.log_index):
                    if event.stage is not stage:
                        continue
                    if stage is ev.PipelineStage.REGISTRATION:
                        self._register(event, block)
                    else:
                        self._apply(event, block)

        self._reconcile()
        self.summary.reference_rate = self.store.reference_rate.ref_price_usd

    # -------------------------------------------------------------------------
    # Stage 1: registration
    # -------------------------------------------------------------------------
    def _register(self, event: ev.PairRegistered, block: ev.Block) -> None:
        if self.store.get_pair(event.pair) is not None:
            self.summary.skipped_duplicate_registration += 1
            log.debug(f"Pair {event.pair} already registered, skipping")
            return

        token0 = self._get_or_create_asset(event.token0)
        token1 = self._get_or_create_asset(event.token1)

        pair = Pair.new(event.pair, token0.id, token1.id, block_number=block.height, timestamp=block.timestamp)
        self.store.add_pair(pair)
        self.store.registry.pair_count += 1

        self.summary.pairs_created += 1
        self.summary.processed += 1
        log.debug(f"New pair: {pair.id} ({token0.symbol}/{token1.symbol})")

    def _get_or_create_asset(self, address: str) -> Asset:
        asset = self.store.get_asset(address)
        if asset is None:
            meta = resolve_metadata(address)
            asset = Asset.new(address, meta.symbol, meta.name, meta.decimals)
            if self.classifier.is_reference(address):
                asset.derived_ref = ONE
            self.store.add_asset(asset)
            self.summary.assets_created += 1
        return asset

    # -------------------------------------------------------------------------
    # Stage 2: application
    # -------------------------------------------------------------------------
    def _apply(self, event: ev.Sync | ev.Mint | ev.Burn | ev.Swap, block: ev.Block) -> None:
        pair = self.store.get_pair(event.address)
        if pair is None:
            self.summary.skipped_unknown_pair += 1
            log.debug(f"{event.kind} from unregistered pair {event.address}, skipping")
            return

        asset0 = self.store.get_asset(pair.token0_id)
        asset1 = self.store.get_asset(pair.token1_id)
        if asset0 is None or asset1 is None:
            self.summary.skipped_missing_asset += 1
            log.warning(f"Pair {pair.id} references an unknown asset, skipping {event.kind} {event.transaction_hash}")
            return

        self.store.get_or_create_activity(event.transaction_hash, block.height, block.timestamp)

        if isinstance(event, ev.Sync):
            self._sync(event, pair, asset0, asset1)
        elif isinstance(event, ev.Mint):
            self._mint(event, block, pair, asset0, asset1)
        elif isinstance(event, ev.Burn):
            self._burn(event, block, pair, asset0, asset1)
        elif isinstance(event, ev.Swap):
            self._swap(event, block, pair, asset0, asset1)
        self.summary.processed += 1

    def _sync(self, event: ev.Sync, pair: Pair, asset0: Asset, asset1: Asset) -> None:
        previous0, previous1 = pair.reserve0, pair.reserve1

        pair.reserve0 = to_scaled(event.reserve0, asset0.decimals)
        pair.reserve1 = to_scaled(event.reserve1, asset1.decimals)
        pair.token0_price = safe_div(pair.reserve1, pair.reserve0)
        pair.token1_price = safe_div(pair.reserve0, pair.reserve1)

        asset0.total_liquidity += pair.reserve0 - previous0
        asset1.total_liquidity += pair.reserve1 - previous1

        # provisional totals first: the oracle ranks pairs by their reserve_ref
        self._refresh_reserves(pair, asset0, asset1, self.store.reference_rate.ref_price_usd)
        rate = self._reprice(asset0, asset1)
        self._refresh_reserves(pair, asset0, asset1, rate)

        self.summary.syncs += 1

    def _mint(self, event: ev.Mint, block: ev.Block, pair: Pair, asset0: Asset, asset1: Asset) -> None:
        amount0 = to_scaled(event.amount0, asset0.decimals)
        amount1 = to_scaled(event.amount1, asset1.decimals)

        self.store.append(
            Mint(
                id=event_id(event.transaction_hash, event.log_index),
                transaction_id=event.transaction_hash,
                pair_id=pair.id,
                timestamp=block.timestamp,
                log_index=event.log_index,
                sender=event.sender,
                amount0=amount0,
                amount1=amount1,
                amount_usd=self._liquidity_usd(amount0, asset0, amount1, asset1),
            )
        )
        self._count_transaction(pair, asset0, asset1)
        self.summary.mints += 1

    def _burn(self, event: ev.Burn, block: ev.Block, pair: Pair, asset0: Asset, asset1: Asset) -> None:
        amount0 = to_scaled(event.amount0, asset0.decimals)
        amount1 = to_scaled(event.amount1, asset1.decimals)

        self.store.append(
            Burn(
                id=event_id(event.transaction_hash, event.log_index),
                transaction_id=event.transaction_hash,
                pair_id=pair.id,
                timestamp=block.timestamp,
                log_index=event.log_index,
                sender=event.sender,
                to=event.to,
                amount0=amount0,
                amount1=amount1,
                amount_usd=self._liquidity_usd(amount0, asset0, amount1, asset1),
            )
        )
        self._count_transaction(pair, asset0, asset1)
        self.summary.burns += 1

    def _swap(self, event: ev.Swap, block: ev.Block, pair: Pair, asset0: Asset, asset1: Asset) -> None:
        amount0_in = to_scaled(event.amount0_in, asset0.decimals)
        amount1_in = to_scaled(event.amount1_in, asset1.decimals)
        amount0_out = to_scaled(event.amount0_out, asset0.decimals)
        amount1_out = to_scaled(event.amount1_out, asset1.decimals)

        amount0_total = amount0_in + amount0_out
        amount1_total = amount1_in + amount1_out

        rate = self.store.reference_rate.ref_price_usd
        amount0_usd = amount0_total * asset0.derived_ref * rate
        amount1_usd = amount1_total * asset1.derived_ref * rate

        derived_usd = (amount0_usd + amount1_usd) / TWO
        tracked_usd = tracked_volume(
            amount0_usd,
            self.classifier.is_whitelisted(asset0.id),
            amount1_usd,
            self.classifier.is_whitelisted(asset1.id),
        )
        # Policy pending confirmation: a swap with no whitelisted leg reports its
        # derived value instead of zero.
        amount_usd = tracked_usd if tracked_usd > ZERO else derived_usd

        self.store.append(
            Swap(
                id=event_id(event.transaction_hash, event.log_index),
                transaction_id=event.transaction_hash,
                pair_id=pair.id,
                timestamp=block.timestamp,
                log_index=event.log_index,
                sender=event.sender,
                from_address=event.sender,
                to=event.to,
                amount0_in=amount0_in,
                amount1_in=amount1_in,
                amount0_out=amount0_out,
                amount1_out=amount1_out,
                amount_usd=amount_usd,
            )
        )

        pair.volume_token0 += amount0_total
        pair.volume_token1 += amount1_total
        pair.volume_usd += amount_usd
        pair.untracked_volume_usd += derived_usd

        for asset, total in ((asset0, amount0_total), (asset1, amount1_total)):
            asset.trade_volume += total
            asset.trade_volume_usd += amount_usd / TWO
            asset.untracked_volume_usd += derived_usd / TWO

        registry = self.store.registry
        registry.total_volume_usd += amount_usd
        registry.total_volume_ref += safe_div(amount_usd, rate)
        registry.untracked_volume_usd += derived_usd

        self._count_transaction(pair, asset0, asset1)
        self.summary.swaps += 1

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _liquidity_usd(self, amount0: Decimal, asset0: Asset, amount1: Decimal, asset1: Asset) -> Decimal:
        rate = self.store.reference_rate.ref_price_usd
        return (amount0 * asset0.derived_ref + amount1 * asset1.derived_ref) * rate

    def _count_transaction(self, pair: Pair, asset0: Asset, asset1: Asset) -> None:
        pair.tx_count += 1
        asset0.tx_count += 1
        asset1.tx_count += 1
        self.store.registry.tx_count += 1

    def _refresh_reserves(self, pair: Pair, asset0: Asset, asset1: Asset, rate: Decimal) -> None:
        reserve0_ref = pair.reserve0 * asset0.derived_ref
        reserve1_ref = pair.reserve1 * asset1.derived_ref
        pair.reserve_ref = reserve0_ref + reserve1_ref
        pair.reserve_usd = pair.reserve_ref * rate
        pair.tracked_reserve_ref = tracked_liquidity(
            reserve0_ref,
            self.classifier.is_whitelisted(asset0.id),
            reserve1_ref,
            self.classifier.is_whitelisted(asset1.id),
        )

    def _reprice(self, *assets: Asset) -> Decimal:
        """Refresh the reference rate and the prices of ``assets`` and the stable assets."""
        rate = self.oracle.fiat_per_reference()
        self.store.reference_rate.ref_price_usd = rate

        targets = {asset.id: asset for asset in assets}
        for stable_id in self.classifier.stables:
            stable = self.store.get_asset(stable_id)
            if stable is not None:
                targets[stable.id] = stable
        for asset in targets.values():
            asset.derived_ref = self.oracle.reference_per_unit(asset.id, rate)
        return rate

    def _reconcile(self) -> None:
        rate = self.oracle.fiat_per_reference()
        self.store.reference_rate.ref_price_usd = rate

        for asset in self.store.assets():
            asset.derived_ref = self.oracle.reference_per_unit(asset.id, rate)

        registry = self.store.registry
        for pair in self.store.pairs():
            asset0 = self.store.get_asset(pair.token0_id)
            asset1 = self.store.get_asset(pair.token1_id)
            if asset0 is None or asset1 is None:
                continue
            self._refresh_reserves(pair, asset0, asset1, rate)
            baseline_ref, baseline_usd = self.store.baseline(pair.id)
            registry.total_liquidity_ref += pair.reserve_ref - baseline_ref
            registry.total_liquidity_usd += pair.reserve_usd - baseline_usd
