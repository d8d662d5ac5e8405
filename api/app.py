"""
FastAPI REST API for the Study AI+ flows.

Exposes every study flow over HTTP together with the knowledge base,
learning history and multi-turn study sessions. Flow endpoints always answer
200: the body is either the flow output or ``{"error", "category"}``.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from api.lifespan import lifespan
from api.routers import (
    health_router,
    flows_router,
    knowledge_router,
    history_router,
    sessions_router,
)
from config import settings
from flows.sessions import SessionRegistry
from utils.errors import BaseApplicationError, get_error_handler
from utils.monitoring import get_correlation_id, get_logger

# Load environment variables
load_dotenv()

logger = get_logger(__name__)


# ============================================================================
# Application
# ============================================================================

app = FastAPI(
    title="Study AI+ Flows API",
    description=(
        "LLM-backed study flows: summaries, quizzes, flashcards, Mr. Know chat, "
        "the interactive tutor and code lessons."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Live sessions belong to this app instance
app.state.session_registry = SessionRegistry()


# ============================================================================
# Middleware
# ============================================================================

CORS_HEADERS = [
    "Content-Type",
    "Accept",
    "Origin",
    "X-Correlation-ID",
    "X-User-ID",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=CORS_HEADERS,
    expose_headers=["X-Correlation-ID"],
    max_age=600,
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(BaseApplicationError)
async def application_error_handler(request, exc: BaseApplicationError):
    """Handle application errors."""
    get_error_handler().log_error(exc, context={
        "path": request.url.path,
        "method": request.method,
        "correlation_id": get_correlation_id()
    })

    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.to_dict(), "correlation_id": get_correlation_id()}
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request, exc: Exception):
    """Handle unexpected errors."""
    get_error_handler().log_error(exc, context={
        "path": request.url.path,
        "method": request.method,
        "correlation_id": get_correlation_id()
    })

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "correlation_id": get_correlation_id()
        }
    )


# ============================================================================
# Routers
# ============================================================================

app.include_router(health_router)
app.include_router(flows_router)
app.include_router(knowledge_router)
app.include_router(history_router)
app.include_router(sessions_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
