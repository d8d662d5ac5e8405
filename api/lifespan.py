"""
Application lifespan management.

Sets up logging, creates the database tables on startup and disposes of the
engine on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from utils.monitoring import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks for the API."""
    setup_logging()
    logger.info("🚀 Starting Study AI+ Flows API")

    # =========================================================================
    # Configuration check
    # =========================================================================
    for issue in settings.validate_production_config():
        logger.warning(f"⚠️  {issue}")

    # =========================================================================
    # Database Initialization
    # =========================================================================
    from database.core import init_db, close_db

    if init_db():
        logger.info("✅ Database ready")
    else:
        logger.warning("⚠️  Database initialization failed; knowledge base and history are unavailable")

    logger.info(
        "✅ Flows ready",
        model=settings.default_model,
        dedupe=settings.flow_dedupe_enabled,
    )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    active = len(app.state.session_registry) if hasattr(app.state, "session_registry") else 0
    logger.info("🛑 Shutting down", active_sessions=active)
    close_db()
