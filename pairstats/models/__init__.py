from pairstats.models.base import Base
from pairstats.models.asset import Asset
from pairstats.models.pair import Pair
from pairstats.models.registry import REFERENCE_RATE_ID, ReferenceRate, Registry
from pairstats.models.events import Activity, Burn, Mint, Swap, event_id
from pairstats.models.checkpoints import IndexerCheckpoint
from pairstats.models.runs import BatchRun

__all__ = [
    "Base",
    "Asset",
    "Pair",
    "Registry",
    "ReferenceRate",
    "REFERENCE_RATE_ID",
    "Activity",
    "Mint",
    "Burn",
    "Swap",
    "event_id",
    "IndexerCheckpoint",
    "BatchRun",
]
