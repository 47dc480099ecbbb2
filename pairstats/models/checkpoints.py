"""Powers incremental indexing + resume-on-failure"""

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from pairstats.models.base import Base


class IndexerCheckpoint(Base):
    __tablename__ = "indexer_checkpoints"

    processor_name: Mapped[str] = mapped_column(
        String,
        primary_key=True,
    )

    # last block whose batch was fully flushed
    last_block_height: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
