"""Exception taxonomy for batch processing.

Skips (undecodable logs, events for unknown pairs) are counted, not raised
past the batch. Only ordering violations and flush failures abort a batch.
"""


class PairStatsError(Exception):
    """Base class for indexer errors."""


class DecodeError(PairStatsError):
    """A raw log could not be interpreted as one of the known event variants."""

    def __init__(self, message: str, raw: dict | None = None):
        super().__init__(message)
        self.raw = raw


class BatchOrderError(PairStatsError):
    """Blocks were not handed to the pipeline in ascending height order."""


class FlushError(PairStatsError):
    """The persistent store rejected a batch flush; the whole batch must be replayed."""
