"""Builders for decoded events, blocks and batches used across the test suite."""

from pairstats.core.config import (
    DAI_ADDRESS,
    USDC_ADDRESS,
    WETH_ADDRESS,
    Settings,
)
from pairstats.schemas import events as ev

REGISTRY = "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f"
WETH = WETH_ADDRESS
USDC = USDC_ADDRESS
DAI = DAI_ADDRESS

# unlisted tokens (18 decimals, not whitelisted)
TOKEN_A = "0x" + "e" * 40
TOKEN_B = "0x" + "f" * 40

PAIR_WETH_A = "0x" + "1" * 40
PAIR_USDC_WETH = "0x" + "2" * 40
PAIR_WETH_B = "0x" + "3" * 40
PAIR_A_B = "0x" + "4" * 40
PAIR_DAI_WETH = "0x" + "5" * 40

TRADER = "0x" + "9" * 40

E18 = 10**18
E6 = 10**6


def make_settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite://", "SLACK_WEBHOOK_URL": None}
    values.update(overrides)
    return Settings(**values)


def tx(n: int) -> str:
    return "0x" + format(n, "064x")


def registered(pair: str, token0: str, token1: str, n: int, log_index: int = 0) -> ev.PairRegistered:
    return ev.PairRegistered(
        address=REGISTRY, transaction_hash=tx(n), log_index=log_index, token0=token0, token1=token1, pair=pair
    )


def sync(pair: str, reserve0: int, reserve1: int, n: int, log_index: int = 1) -> ev.Sync:
    return ev.Sync(address=pair, transaction_hash=tx(n), log_index=log_index, reserve0=reserve0, reserve1=reserve1)


def mint(pair: str, amount0: int, amount1: int, n: int, log_index: int = 2) -> ev.Mint:
    return ev.Mint(
        address=pair, transaction_hash=tx(n), log_index=log_index, sender=TRADER, amount0=amount0, amount1=amount1
    )


def burn(pair: str, amount0: int, amount1: int, n: int, log_index: int = 2) -> ev.Burn:
    return ev.Burn(
        address=pair,
        transaction_hash=tx(n),
        log_index=log_index,
        sender=TRADER,
        amount0=amount0,
        amount1=amount1,
        to=TRADER,
    )


def swap(
    pair: str,
    n: int,
    amount0_in: int = 0,
    amount1_in: int = 0,
    amount0_out: int = 0,
    amount1_out: int = 0,
    log_index: int = 2,
) -> ev.Swap:
    return ev.Swap(
        address=pair,
        transaction_hash=tx(n),
        log_index=log_index,
        sender=TRADER,
        amount0_in=amount0_in,
        amount1_in=amount1_in,
        amount0_out=amount0_out,
        amount1_out=amount1_out,
        to=TRADER,
    )


def block(height: int, *events, timestamp: int | None = None) -> ev.Block:
    return ev.Block(height=height, timestamp=timestamp if timestamp is not None else 1_600_000_000 + height, events=tuple(events))


def batch(*blocks: ev.Block, skipped_decode: int = 0) -> ev.Batch:
    return ev.Batch(blocks=tuple(blocks), skipped_decode=skipped_decode)


def raw_log(event: ev.PairRegistered | ev.Sync | ev.Mint | ev.Burn | ev.Swap) -> dict:
    """The undecoded JSON form of an event."""
    return event if isinstance(event, dict) else event.model_dump(mode="json")
