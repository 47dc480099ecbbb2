from pairstats.api.routes.health import router as health_router
from pairstats.api.routes.indexer import router as indexer_router
from pairstats.api.routes.stats import router as stats_router

__all__ = ["health_router", "indexer_router", "stats_router"]
