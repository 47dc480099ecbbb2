"""Indexer entrypoint - Standalone script for running the indexer once.

Usage:
    python -m pairstats.indexer_entrypoint                  # configured EVENTS_PATH
    python -m pairstats.indexer_entrypoint events.jsonl     # explicit events file
"""

import asyncio
import sys
from typing import Optional

from pairstats.core.config import settings
from pairstats.core.db import SessionLocal
from pairstats.core.errors import PairStatsError
from pairstats.core.logging import get_logger
from pairstats.ingestion.jsonl_source import JsonLinesSource
from pairstats.repositories.sqlalchemy_repository import SqlAlchemyRepository
from pairstats.services.indexer_service import IndexerService

logger = get_logger("indexer_entrypoint")


async def run_indexer_job(events_path: Optional[str] = None):
    """Run the indexer over one events file."""
    path = events_path or settings.EVENTS_PATH
    logger.info(f"Starting indexer job for {path}")
    with SessionLocal() as db:
        service = IndexerService(SqlAlchemyRepository(db), source=JsonLinesSource(path))
        return await service.run()


def main():
    """Main entry point for the indexer."""
    events_path = sys.argv[1] if len(sys.argv) > 1 else None

    try:
        result = asyncio.run(run_indexer_job(events_path))
    except PairStatsError as exc:
        logger.error(f"Indexer failed: {exc}")
        sys.exit(1)

    logger.info(f"Indexer completed: {result}")
    return result


if __name__ == "__main__":
    main()
