"""Static metadata for well-known tokens.

Assets not listed here get a placeholder symbol/name derived from the address
and the default of 18 decimals.
"""

from __future__ import annotations

from typing import Dict, NamedTuple

from pairstats.core.config import (
    DAI_ADDRESS,
    TUSD_ADDRESS,
    USDC_ADDRESS,
    USDT_ADDRESS,
    WBTC_ADDRESS,
    WETH_ADDRESS,
)

DEFAULT_DECIMALS = 18


class AssetMetadata(NamedTuple):
    symbol: str
    name: str
    decimals: int


KNOWN_ASSETS: Dict[str, AssetMetadata] = {
    WETH_ADDRESS: AssetMetadata("WETH", "Wrapped Ether", 18),
    USDC_ADDRESS: AssetMetadata("USDC", "USD Coin", 6),
    DAI_ADDRESS: AssetMetadata("DAI", "Dai Stablecoin", 18),
    USDT_ADDRESS: AssetMetadata("USDT", "Tether USD", 6),
    TUSD_ADDRESS: AssetMetadata("TUSD", "TrueUSD", 18),
    WBTC_ADDRESS: AssetMetadata("WBTC", "Wrapped BTC", 8),
}


def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def resolve_metadata(address: str, known: Dict[str, AssetMetadata] | None = None) -> AssetMetadata:
    """Known metadata for ``address``, or a synthesized placeholder."""
    table = KNOWN_ASSETS if known is None else known
    found = table.get(address.lower())
    if found:
        return found
    short = short_address(address)
    return AssetMetadata(symbol=short, name=f"Token {short}", decimals=DEFAULT_DECIMALS)
