from pathlib import Path
from contextlib import asynccontextmanager
import asyncio
from typing import Optional

from alembic import command
from alembic.config import Config
from fastapi import FastAPI

from pairstats.api.routes import health, indexer, stats
from pairstats.core.config import settings
from pairstats.core.db import SessionLocal
from pairstats.core.logging import get_logger
from pairstats.repositories.sqlalchemy_repository import SqlAlchemyRepository
from pairstats.services.indexer_service import IndexerService


log = get_logger("app")

# Background task handle
_indexer_task: Optional[asyncio.Task] = None


def run_migrations() -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


async def run_indexer() -> None:
    """Run the indexer once over every fresh block."""
    db = SessionLocal()
    try:
        result = await IndexerService(SqlAlchemyRepository(db)).run()
        log.info(f"Indexer: {result['batches']} batches, {result['events_processed']} events, checkpoint={result['checkpoint']}")
    except Exception as exc:
        log.exception(f"Indexer run failed: {exc}")
    finally:
        db.close()


async def scheduled_indexer_task() -> None:
    """Background task that runs the indexer at the configured interval."""
    interval = settings.INDEXER_INTERVAL_SECONDS
    log.info(f"Scheduled indexer task started (interval: {interval}s)")

    await run_indexer()

    while True:
        try:
            await asyncio.sleep(interval)
            await run_indexer()
        except asyncio.CancelledError:
            log.info("Scheduled indexer task cancelled")
            break


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _indexer_task

    log.info(f"Starting application in {settings.ENV.upper()} mode")

    try:
        run_migrations()
    except Exception:
        log.exception("Failed to apply migrations on startup")
        raise

    if settings.INDEXER_ENABLED:
        log.info("Starting scheduled indexer background task...")
        _indexer_task = asyncio.create_task(scheduled_indexer_task())
    else:
        log.info("Scheduled indexer is disabled (INDEXER_ENABLED=false)")

    yield

    log.info("Shutting down services...")
    if _indexer_task:
        _indexer_task.cancel()
        try:
            await _indexer_task
        except asyncio.CancelledError:
            pass
        _indexer_task = None

    log.info("Application shutdown complete")


app = FastAPI(
    title="Pair Stats Indexer",
    description="Derived metrics for a constant-product pair registry",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.debug_enabled,
)


app.include_router(health.router)
app.include_router(indexer.router)
app.include_router(stats.router)
