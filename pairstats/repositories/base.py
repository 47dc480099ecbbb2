from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Collection, List, Optional, Set

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


@dataclass
class Changeset:
    """Everything one batch writes, flushed atomically in field order."""

    processor_name: str
    checkpoint_height: Optional[int] = None
    reference_rate: Optional[ReferenceRate] = None
    registry: Optional[Registry] = None
    assets: List[Asset] = field(default_factory=list)
    pairs: List[Pair] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)
    mints: List[Mint] = field(default_factory=list)
    burns: List[Burn] = field(default_factory=list)
    swaps: List[Swap] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.activities) + len(self.mints) + len(self.burns) + len(self.swaps)


class EntityRepository(ABC):
    """Persistent store keyed by entity id.

    Reads return detached copies; nothing is persisted until ``flush``.
    """

    @abstractmethod
    def find_pairs(self, ids: Collection[str]) -> List[Pair]: ...

    @abstractmethod
    def find_assets(self, ids: Collection[str]) -> List[Asset]: ...

    @abstractmethod
    def find_activity_ids(self, ids: Collection[str]) -> Set[str]: ...

    @abstractmethod
    def find_pricing_pairs(self, reference_id: str, partner_ids: Collection[str]) -> List[Pair]:
        """Pairs of ``reference_id`` against any asset in ``partner_ids`` (either order)."""

    @abstractmethod
    def get_registry(self, registry_id: str) -> Optional[Registry]: ...

    @abstractmethod
    def get_reference_rate(self, rate_id: str) -> Optional[ReferenceRate]: ...

    @abstractmethod
    def get_checkpoint(self, processor_name: str) -> Optional[int]: ...

    @abstractmethod
    def flush(self, changeset: Changeset) -> None:
        """Write the changeset all-or-nothing; raise ``FlushError`` on rejection."""

    @abstractmethod
    def record_run(self, run: BatchRun) -> None: ...

    @abstractmethod
    def list_runs(self, limit: int = 10, status: Optional[str] = None) -> List[BatchRun]: ...

    @abstractmethod
    def list_checkpoints(self) -> List[IndexerCheckpoint]: ...
