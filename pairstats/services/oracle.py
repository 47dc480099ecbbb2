"""Reference-asset/fiat rate and per-asset reference prices from staged reserves.

Both lookups scan staged pairs in ascending key order and keep the candidate
with strictly greater liquidity, so ties resolve to the lowest pair key.
Pricing is single-hop: an asset with no direct pair against the reference
asset is priced at zero.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pairstats.core.decimals import ONE, ZERO, safe_div
from pairstats.services.pricing import AssetClassifier
from pairstats.services.staging import StagingStore


class PriceOracle:
    def __init__(self, store: StagingStore, classifier: AssetClassifier, fallback_rate: Decimal):
        self.store = store
        self.classifier = classifier
        self.fallback_rate = fallback_rate

    def fiat_per_reference(self) -> Decimal:
        """Fiat value of one reference unit from the deepest stable/reference pair."""
        best_rate = ZERO
        best_liquidity = ZERO

        for pair in self.store.pairs():
            if not pair.has_reserves():
                continue

            if self.classifier.is_reference(pair.token0_id) and self.classifier.is_stable(pair.token1_id):
                rate = safe_div(pair.reserve1, pair.reserve0)
                liquidity = pair.reserve1
            elif self.classifier.is_stable(pair.token0_id) and self.classifier.is_reference(pair.token1_id):
                rate = safe_div(pair.reserve0, pair.reserve1)
                liquidity = pair.reserve0
            else:
                continue

            if liquidity > best_liquidity:
                best_rate = rate
                best_liquidity = liquidity

        return best_rate if best_rate > ZERO else self.fallback_rate

    def reference_per_unit(self, asset_id: str, fiat_rate: Optional[Decimal] = None) -> Decimal:
        """Price of one unit of ``asset_id`` in reference units.

        ``fiat_rate`` short-circuits the stable-asset rate lookup when the
        caller has already computed it for this state of the reserves.
        """
        if self.classifier.is_reference(asset_id):
            return ONE

        if self.classifier.is_stable(asset_id):
            rate = self.fiat_per_reference() if fiat_rate is None else fiat_rate
            return safe_div(ONE, rate)

        best_price = ZERO
        best_liquidity = ZERO
        reference = self.classifier.reference

        for pair in self.store.pairs():
            if not pair.has_reserves():
                continue

            if pair.token0_id == asset_id and pair.token1_id == reference:
                price = safe_div(pair.reserve1, pair.reserve0)
            elif pair.token1_id == asset_id and pair.token0_id == reference:
                price = safe_div(pair.reserve0, pair.reserve1)
            else:
                continue

            if pair.reserve_ref > best_liquidity:
                best_price = price
                best_liquidity = pair.reserve_ref

        return best_price
