"""Abstract block source interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BlockSource(ABC):
    """Abstract base class for raw block sources.

    A raw block is a dict with ``height``, ``timestamp`` and ``logs`` (a list of
    undecoded log dicts).
    """

    name: str

    @abstractmethod
    async def fetch(self) -> List[Dict[str, Any]]:
        """Fetch raw blocks (must include height, timestamp and logs)."""

    @staticmethod
    def filter_incremental(
        blocks: List[Dict[str, Any]],
        checkpoint: Optional[int],
        start_block: int = 0,
        end_block: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        floor = checkpoint + 1 if checkpoint is not None else start_block
        return [
            blk
            for blk in blocks
            if blk["height"] >= floor and (end_block is None or blk["height"] <= end_block)
        ]
