"""Typed event variants delivered by the event source.

Every decoded log is exactly one of ``PairRegistered``, ``Sync``, ``Mint``,
``Burn`` or ``Swap``; the ``kind`` field is the discriminator. Each variant
declares the pipeline stage it belongs to.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, ClassVar, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")
_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


def _normalize_address(value: str) -> str:
    value = value.strip().lower()
    if not _ADDRESS_RE.match(value):
        raise ValueError(f"not an address: {value!r}")
    return value


def _normalize_hash(value: str) -> str:
    value = value.strip().lower()
    if not _HASH_RE.match(value):
        raise ValueError(f"not a transaction hash: {value!r}")
    return value


Address = Annotated[str, AfterValidator(_normalize_address)]
TxHash = Annotated[str, AfterValidator(_normalize_hash)]
Uint = Annotated[int, Field(ge=0)]


class PipelineStage(str, Enum):
    """Pass an event kind is applied in. Registration always precedes application."""

    REGISTRATION = "registration"
    APPLICATION = "application"


class _LogEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    stage: ClassVar[PipelineStage]

    address: Address  # emitting contract
    transaction_hash: TxHash
    log_index: Uint


class PairRegistered(_LogEvent):
    stage: ClassVar[PipelineStage] = PipelineStage.REGISTRATION

    kind: Literal["pair_registered"] = "pair_registered"
    token0: Address
    token1: Address
    pair: Address
    all_pairs_length: Uint | None = None


class Sync(_LogEvent):
    stage: ClassVar[PipelineStage] = PipelineStage.APPLICATION

    kind: Literal["sync"] = "sync"
    reserve0: Uint
    reserve1: Uint


class Mint(_LogEvent):
    stage: ClassVar[PipelineStage] = PipelineStage.APPLICATION

    kind: Literal["mint"] = "mint"
    sender: Address
    amount0: Uint
    amount1: Uint


class Burn(_LogEvent):
    stage: ClassVar[PipelineStage] = PipelineStage.APPLICATION

    kind: Literal["burn"] = "burn"
    sender: Address
    amount0: Uint
    amount1: Uint
    to: Address


class Swap(_LogEvent):
    stage: ClassVar[PipelineStage] = PipelineStage.APPLICATION

    kind: Literal["swap"] = "swap"
    sender: Address
    amount0_in: Uint
    amount1_in: Uint
    amount0_out: Uint
    amount1_out: Uint
    to: Address


PairEvent = Annotated[
    Union[PairRegistered, Sync, Mint, Burn, Swap],
    Field(discriminator="kind"),
]

pair_event_adapter: TypeAdapter[PairEvent] = TypeAdapter(PairEvent)


class Block(BaseModel):
    """One block with its decoded events, kept in log-index order."""

    model_config = ConfigDict(frozen=True)

    height: Uint
    timestamp: Uint  # seconds
    events: tuple[PairEvent, ...] = ()


class Batch(BaseModel):
    """Contiguous run of blocks processed and flushed together."""

    model_config = ConfigDict(frozen=True)

    blocks: tuple[Block, ...]
    skipped_decode: int = 0

    @property
    def from_block(self) -> int | None:
        return self.blocks[0].height if self.blocks else None

    @property
    def to_block(self) -> int | None:
        return self.blocks[-1].height if self.blocks else None
