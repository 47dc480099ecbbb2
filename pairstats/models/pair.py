"""Trading pair entity with its reserves, spot prices and cumulative volumes."""

from decimal import Decimal

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from pairstats.core.decimals import ZERO
from pairstats.models.base import Amount, Base


class Pair(Base):
    """A registered pool. ``token0_id``/``token1_id`` order is fixed at creation."""

    __tablename__ = "pairs"

    id: Mapped[str] = mapped_column(String(42), primary_key=True, comment="Lowercase pool address")

    token0_id: Mapped[str] = mapped_column(String(42), ForeignKey("assets.id"), nullable=False, index=True)
    token1_id: Mapped[str] = mapped_column(String(42), ForeignKey("assets.id"), nullable=False, index=True)

    reserve0: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    reserve1: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    # token0 priced in token1 and the inverse; zero while either reserve is zero
    token0_price: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    token1_price: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    reserve_ref: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    reserve_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    tracked_reserve_ref: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    volume_token0: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    volume_token1: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    untracked_volume_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    tx_count: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at_block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    @classmethod
    def new(cls, id: str, token0_id: str, token1_id: str, block_number: int, timestamp: int) -> "Pair":
        return cls(
            id=id,
            token0_id=token0_id,
            token1_id=token1_id,
            reserve0=ZERO,
            reserve1=ZERO,
            token0_price=ZERO,
            token1_price=ZERO,
            reserve_ref=ZERO,
            reserve_usd=ZERO,
            tracked_reserve_ref=ZERO,
            volume_token0=ZERO,
            volume_token1=ZERO,
            volume_usd=ZERO,
            untracked_volume_usd=ZERO,
            tx_count=0,
            created_at_timestamp=timestamp,
            created_at_block_number=block_number,
        )

    def has_reserves(self) -> bool:
        return self.reserve0 > ZERO and self.reserve1 > ZERO

    def __repr__(self) -> str:
        return f"<Pair({self.id} {self.token0_id}/{self.token1_id})>"
