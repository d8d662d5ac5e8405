"""API Routers."""

from .health import router as health_router
from .flows import router as flows_router
from .knowledge import router as knowledge_router
from .history import router as history_router
from .sessions import router as sessions_router

__all__ = [
    "health_router",
    "flows_router",
    "knowledge_router",
    "history_router",
    "sessions_router",
]
