"""Tracked token entity, created on first appearance in a pair registration."""

from decimal import Decimal

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pairstats.core.decimals import ZERO
from pairstats.models.base import Amount, Base


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(42), primary_key=True, comment="Lowercase token address")

    symbol: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False)

    trade_volume: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    trade_volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    untracked_volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    tx_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_liquidity: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    # Price in units of the reference asset, from its most liquid direct pair
    derived_ref: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    @classmethod
    def new(cls, id: str, symbol: str, name: str, decimals: int) -> "Asset":
        return cls(
            id=id,
            symbol=symbol,
            name=name,
            decimals=decimals,
            trade_volume=ZERO,
            trade_volume_usd=ZERO,
            untracked_volume_usd=ZERO,
            tx_count=0,
            total_liquidity=ZERO,
            derived_ref=ZERO,
        )

    def __repr__(self) -> str:
        return f"<Asset({self.symbol} {self.id})>"
