"""Asset classification and whitelist-weighted ("tracked") valuation rules."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from pairstats.core.config import Settings
from pairstats.core.decimals import TWO, ZERO


class AssetClassifier:
    """Answers membership questions against the configured address sets."""

    def __init__(self, reference: str, stables: Iterable[str], whitelist: Iterable[str]):
        self.reference = reference.lower()
        self.stables = frozenset(addr.lower() for addr in stables)
        self.whitelist = frozenset(addr.lower() for addr in whitelist)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetClassifier":
        return cls(
            reference=settings.REFERENCE_ASSET_ADDRESS,
            stables=settings.STABLE_ASSET_ADDRESSES,
            whitelist=settings.WHITELIST_ADDRESSES,
        )

    def is_reference(self, asset_id: str) -> bool:
        return asset_id == self.reference

    def is_stable(self, asset_id: str) -> bool:
        return asset_id in self.stables

    def is_whitelisted(self, asset_id: str) -> bool:
        return asset_id in self.whitelist


def tracked_volume(amount0: Decimal, whitelisted0: bool, amount1: Decimal, whitelisted1: bool) -> Decimal:
    """Reportable volume of a trade whose sides are worth ``amount0`` and ``amount1``.

    Both sides trusted: their average. One side trusted: that side. Neither: zero.
    """
    if whitelisted0 and whitelisted1:
        return (amount0 + amount1) / TWO
    if whitelisted0:
        return amount0
    if whitelisted1:
        return amount1
    return ZERO


def tracked_liquidity(amount0: Decimal, whitelisted0: bool, amount1: Decimal, whitelisted1: bool) -> Decimal:
    """Reportable liquidity of a pool whose reserves are worth ``amount0`` and ``amount1``.

    A single trusted side is doubled to extrapolate the value of the whole pool.
    """
    if whitelisted0 and whitelisted1:
        return amount0 + amount1
    if whitelisted0:
        return amount0 * TWO
    if whitelisted1:
        return amount1 * TWO
    return ZERO
