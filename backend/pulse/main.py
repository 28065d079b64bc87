"""Pulse API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PulseError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, collection store and session registry built in lifespan;
      every sync loop stopped before the engine is disposed

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Academy sessions opened lazily on first request, not at startup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse.api.error_handlers import register_error_handlers
from pulse.api.routes import automation, health, ledger, schedule
from pulse.config import get_settings
from pulse.infrastructure.collection_store import SqlCollectionStore
from pulse.infrastructure.database import init_db
from pulse.infrastructure.observability import setup_logging
from pulse.services.session_registry import AcademySessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    store = SqlCollectionStore(
        db,
        timeout_seconds=settings.store_timeout_seconds,
        max_retries=settings.store_max_retries,
        base_delay_ms=settings.store_base_delay_ms,
        max_delay_ms=settings.store_max_delay_ms,
    )
    app.state.registry = AcademySessionRegistry(store, settings)
    logger.info("Pulse API started")
    yield
    logger.info("Pulse API shutting down")
    await app.state.registry.close_all()
    await db.dispose()


app = FastAPI(title="Pulse API", version="1.0.0", lifespan=lifespan)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(schedule.router)
app.include_router(ledger.router)
app.include_router(automation.router)

register_error_handlers(app)
