"""Append-only activity records: transactions and the mints/burns/swaps they contain.

Event ids are ``{transaction_hash}-{log_index}``, stable across batches.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from pairstats.models.base import Amount, Base


def event_id(transaction_hash: str, log_index: int) -> str:
    return f"{transaction_hash}-{log_index}"


class Activity(Base):
    """Grouping record for every event emitted by one transaction."""

    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(66), primary_key=True, comment="Transaction hash")
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class _PairEventMixin:
    id: Mapped[str] = mapped_column(String(140), primary_key=True)

    @declared_attr
    def transaction_id(cls) -> Mapped[str]:
        return mapped_column(String(66), ForeignKey("activities.id"), nullable=False, index=True)

    @declared_attr
    def pair_id(cls) -> Mapped[str]:
        return mapped_column(String(42), ForeignKey("pairs.id"), nullable=False, index=True)

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    log_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sender: Mapped[str] = mapped_column(String(42), nullable=False)
    amount_usd: Mapped[Decimal] = mapped_column(Amount, nullable=False)


class Mint(_PairEventMixin, Base):
    __tablename__ = "mints"

    amount0: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    amount1: Mapped[Decimal] = mapped_column(Amount, nullable=False)


class Burn(_PairEventMixin, Base):
    __tablename__ = "burns"

    to: Mapped[str] = mapped_column(String(42), nullable=False)
    amount0: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    amount1: Mapped[Decimal] = mapped_column(Amount, nullable=False)


class Swap(_PairEventMixin, Base):
    __tablename__ = "swaps"

    # "from" is a Python keyword; the column keeps the conventional name
    from_address: Mapped[str] = mapped_column("from", String(42), nullable=False)
    to: Mapped[str] = mapped_column(String(42), nullable=False)
    amount0_in: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    amount1_in: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    amount0_out: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    amount1_out: Mapped[Decimal] = mapped_column(Amount, nullable=False)
