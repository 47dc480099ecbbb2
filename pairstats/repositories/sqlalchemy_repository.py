"""SQLAlchemy-backed persistent store (PostgreSQL in production, SQLite locally)."""

from __future__ import annotations

from typing import Any, Collection, Dict, Iterator, List, Optional, Sequence, Set, Type

from sqlalchemy import and_, func, insert, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pairstats.core.errors import FlushError
from pairstats.core.logging import get_logger
from pairstats.models import (
    Activity,
    Asset,
    BatchRun,
    Burn,
    IndexerCheckpoint,
    Mint,
    Pair,
    ReferenceRate,
    Registry,
    Swap,
)
from pairstats.models.base import Base, detached_copy, to_row
from pairstats.repositories.base import Changeset, EntityRepository

log = get_logger("repositories.sqlalchemy")

# Keeps every statement under SQLite's bound-parameter limit.
CHUNK_SIZE = 500


def _chunks(items: Sequence[Any], size: int = CHUNK_SIZE) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class SqlAlchemyRepository(EntityRepository):
    """Runs keyed bulk reads and the single-transaction batch flush."""

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def _find(self, model: Type[Base], ids: Collection[str]) -> List[Any]:
        found: List[Any] = []
        for chunk in _chunks(sorted(set(ids))):
            stmt = select(model).where(model.id.in_(chunk)).execution_options(populate_existing=True)
            found.extend(detached_copy(row) for row in self.db.execute(stmt).scalars())
        return found

    def find_pairs(self, ids: Collection[str]) -> List[Pair]:
        return self._find(Pair, ids)

    def find_assets(self, ids: Collection[str]) -> List[Asset]:
        return self._find(Asset, ids)

    def find_activity_ids(self, ids: Collection[str]) -> Set[str]:
        found: Set[str] = set()
        for chunk in _chunks(sorted(set(ids))):
            found.update(self.db.execute(select(Activity.id).where(Activity.id.in_(chunk))).scalars())
        return found

    def find_pricing_pairs(self, reference_id: str, partner_ids: Collection[str]) -> List[Pair]:
        found: Dict[str, Pair] = {}
        for chunk in _chunks(sorted(set(partner_ids))):
            stmt = (
                select(Pair)
                .where(
                    or_(
                        and_(Pair.token0_id == reference_id, Pair.token1_id.in_(chunk)),
                        and_(Pair.token1_id == reference_id, Pair.token0_id.in_(chunk)),
                    )
                )
                .execution_options(populate_existing=True)
            )
            for pair in self.db.execute(stmt).scalars():
                found[pair.id] = detached_copy(pair)
        return [found[key] for key in sorted(found)]

    def get_registry(self, registry_id: str) -> Optional[Registry]:
        found = self.db.get(Registry, registry_id, populate_existing=True)
        return detached_copy(found) if found else None

    def get_reference_rate(self, rate_id: str) -> Optional[ReferenceRate]:
        found = self.db.get(ReferenceRate, rate_id, populate_existing=True)
        return detached_copy(found) if found else None

    def get_checkpoint(self, processor_name: str) -> Optional[int]:
        found = self.db.get(IndexerCheckpoint, processor_name, populate_existing=True)
        return found.last_block_height if found else None

    # -------------------------------------------------------------------------
    # Batch flush
    # -------------------------------------------------------------------------
    def _dialect_insert(self, model: Type[Base]):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(model)
        if dialect == "sqlite":
            return sqlite_insert(model)
        raise FlushError(f"Upsert not supported for dialect: {dialect}")

    def _upsert(self, model: Type[Base], rows: List[Dict[str, Any]], **extra_set: Any) -> None:
        """Insert rows, updating every non-key column on primary-key conflict."""
        if not rows:
            return
        keys = [col.key for col in model.__table__.primary_key.columns]
        for chunk in _chunks(rows):
            stmt = self._dialect_insert(model).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=keys,
                set_={
                    **{name: stmt.excluded[name] for name in chunk[0] if name not in keys},
                    **extra_set,
                },
            )
            self.db.execute(stmt)

    def _insert(self, model: Type[Base], rows: List[Dict[str, Any]]) -> None:
        """Plain insert for append-only records; duplicates fail the flush."""
        for chunk in _chunks(rows):
            self.db.execute(insert(model), list(chunk))

    def flush(self, changeset: Changeset) -> None:
        try:
            if changeset.reference_rate is not None:
                self._upsert(ReferenceRate, [to_row(changeset.reference_rate)])
            if changeset.registry is not None:
                self._upsert(Registry, [to_row(changeset.registry)])
            self._upsert(Asset, [to_row(asset) for asset in changeset.assets])
            self._upsert(Pair, [to_row(pair) for pair in changeset.pairs])
            self._insert(Activity, [to_row(record) for record in changeset.activities])
            self._insert(Mint, [to_row(record) for record in changeset.mints])
            self._insert(Burn, [to_row(record) for record in changeset.burns])
            self._insert(Swap, [to_row(record) for record in changeset.swaps])
            if changeset.checkpoint_height is not None:
                self._upsert(
                    IndexerCheckpoint,
                    [
                        {
                            "processor_name": changeset.processor_name,
                            "last_block_height": changeset.checkpoint_height,
                        }
                    ],
                    updated_at=func.now(),
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            log.error(f"Flush rejected, rolled back: {exc}")
            raise FlushError(str(exc)) from exc

    # -------------------------------------------------------------------------
    # Batch runs & checkpoints
    # -------------------------------------------------------------------------
    def record_run(self, run: BatchRun) -> None:
        self.db.merge(detached_copy(run))
        self.db.commit()

    def list_runs(self, limit: int = 10, status: Optional[str] = None) -> List[BatchRun]:
        stmt = select(BatchRun)
        if status:
            stmt = stmt.where(BatchRun.status == status)
        stmt = stmt.order_by(BatchRun.started_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def list_checkpoints(self) -> List[IndexerCheckpoint]:
        stmt = select(IndexerCheckpoint).order_by(IndexerCheckpoint.processor_name)
        return list(self.db.execute(stmt).scalars().all())
