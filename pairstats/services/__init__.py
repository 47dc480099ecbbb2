# Services package
from pairstats.services.indexer_service import IndexerService
from pairstats.services.oracle import PriceOracle
from pairstats.services.pipeline import BatchPipeline, BatchResult, BatchSummary
from pairstats.services.pricing import AssetClassifier
from pairstats.services.staging import StagingStore

__all__ = [
    "AssetClassifier",
    "BatchPipeline",
    "BatchResult",
    "BatchSummary",
    "IndexerService",
    "PriceOracle",
    "StagingStore",
]
