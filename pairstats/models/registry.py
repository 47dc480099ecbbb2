"""Protocol-wide singletons: the registry totals and the reference/fiat rate."""

from decimal import Decimal

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pairstats.core.decimals import ZERO
from pairstats.models.base import Amount, Base

REFERENCE_RATE_ID = "1"


class Registry(Base):
    __tablename__ = "registries"

    id: Mapped[str] = mapped_column(String(42), primary_key=True, comment="Registration-contract address")

    pair_count: Mapped[int] = mapped_column(Integer, nullable=False)

    total_volume_ref: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    total_volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    untracked_volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    total_liquidity_ref: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    total_liquidity_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    tx_count: Mapped[int] = mapped_column(BigInteger, nullable=False)

    @classmethod
    def new(cls, id: str) -> "Registry":
        return cls(
            id=id,
            pair_count=0,
            total_volume_ref=ZERO,
            total_volume_usd=ZERO,
            untracked_volume_usd=ZERO,
            total_liquidity_ref=ZERO,
            total_liquidity_usd=ZERO,
            tx_count=0,
        )


class ReferenceRate(Base):
    """Fiat value of one unit of the reference asset (single row)."""

    __tablename__ = "reference_rates"

    id: Mapped[str] = mapped_column(String(8), primary_key=True)

    ref_price_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    @classmethod
    def new(cls, fallback_rate: Decimal) -> "ReferenceRate":
        return cls(id=REFERENCE_RATE_ID, ref_price_usd=fallback_rate)
