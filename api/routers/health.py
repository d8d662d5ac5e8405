"""Health Check Router - System status endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from api.models import HealthResponse
from api.dependencies import get_session_registry
from flows.sessions import SessionRegistry
from utils.errors import get_error_handler
from utils.monitoring import get_logger, get_metrics_summary
from config import settings

logger = get_logger(__name__)
router = APIRouter(prefix="", tags=["Health"])


@router.get("/", include_in_schema=True)
async def root():
    """API root endpoint with welcome message."""
    return {
        "message": "Study AI+ Flows API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "features": [
            "Document Summaries",
            "Quiz Questions",
            "Flashcards",
            "Mr. Know Chat",
            "Interactive Tutor",
            "Code Wiz & Code Lessons",
            "Knowledge Base",
        ]
    }


def _database_available() -> bool:
    try:
        from database.core import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        return False


@router.get("/health", response_model=HealthResponse)
async def health_check(
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Health check endpoint.

    Returns system status and component availability.
    """
    registry.expire_idle()
    database_available = _database_available()
    llm_configured = bool(settings.google_api_key)

    return HealthResponse(
        status="healthy" if database_available and llm_configured else "degraded",
        version="1.0.0",
        model=settings.default_model,
        llm_configured=llm_configured,
        database_available=database_available,
        active_sessions=len(registry),
    )


@router.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Flow call counts, failures, fallbacks and latency."""
    return {
        "flows": get_metrics_summary(),
        "errors": get_error_handler().get_stats(),
    }
