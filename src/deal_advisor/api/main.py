"""FastAPI application for the Deal Advisor service."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from deal_advisor.logging import configure_logging
from deal_advisor.store import PreferencesStore

from .config import get_settings
from .routes.health import router as health_router
from .routes.preferences import router as preferences_router
from .routes.suggestions import router as suggestions_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load stored preferences at startup."""
    settings = get_settings()
    configure_logging(json_output=settings.LOG_JSON, log_level=settings.LOG_LEVEL)

    store = PreferencesStore(settings.PREFERENCES_PATH)
    logger.info("lifespan.startup", preferences_path=str(store.path))

    # Store on app.state for request handlers
    app.state.store = store
    app.state.preferences = store.load()

    logger.info("lifespan.ready")
    yield

    logger.info("lifespan.shutdown")


app = FastAPI(
    title="deal-advisor",
    description="Derives ranked suggestions and alerts from deal pipeline snapshots",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(preferences_router)
app.include_router(suggestions_router)
