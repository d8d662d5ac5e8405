"""
API Dependencies.

FastAPI dependencies for request identity, database access, the session
registry and the model invoker.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from database.core import get_db_dependency
from flows.invoker import ModelInvoker
from flows.sessions import SessionRegistry
from utils.monitoring import get_correlation_id, set_correlation_id


# ============================================================================
# Correlation ID Dependency
# ============================================================================

async def get_or_create_correlation_id(
    x_correlation_id: Optional[str] = Header(None)
) -> str:
    """
    Get or create correlation ID from request header.

    Args:
        x_correlation_id: Correlation ID from X-Correlation-ID header

    Returns:
        Correlation ID
    """
    if x_correlation_id:
        set_correlation_id(x_correlation_id)
        return x_correlation_id
    return get_correlation_id()


# ============================================================================
# Identity
# ============================================================================

async def get_user_id(
    x_user_id: Optional[str] = Header(None)
) -> str:
    """
    Owner of the request.

    Authentication happens upstream; the gateway forwards the verified user
    id in the X-User-ID header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header"
        )
    return x_user_id.strip()


# ============================================================================
# Sessions & Flows
# ============================================================================

def get_session_registry(request: Request) -> SessionRegistry:
    """Session registry owned by the running app."""
    return request.app.state.session_registry


def get_invoker() -> Optional[ModelInvoker]:
    """
    Model invoker shared by the flows of one request.

    ``None`` lets each flow build an invoker tuned to its own use case.
    Tests override this dependency to inject a mocked model.
    """
    return None


__all__ = [
    "get_or_create_correlation_id",
    "get_user_id",
    "get_db_dependency",
    "get_session_registry",
    "get_invoker",
]
