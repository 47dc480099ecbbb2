"""Enables /stats and per-batch observability"""

import uuid

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from pairstats.models.base import Base


class BatchRun(Base):
    __tablename__ = "batch_runs"

    run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    processor_name: Mapped[str] = mapped_column(String, nullable=False)

    status: Mapped[str] = mapped_column(
        String,
        nullable=False,  # running | success | failure
    )

    from_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    to_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    events_processed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    events_skipped: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    error_message: Mapped[str | None] = mapped_column(String, nullable=True)

    # "metadata" attribute name is reserved by SQLAlchemy; use column name metadata with safe attribute.
    meta: Mapped[dict | None] = mapped_column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=True)

    started_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    ended_at: Mapped[DateTime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
