"""
Core dependencies shared by the route modules
"""

from fastapi import Depends, HTTPException, Request, status
from toystore_auth.config import settings
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.database.supabase_client import get_supabase, get_session_client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

__all__ = [
    "get_supabase",
    "get_session_client",
    "get_sql_pool",
    "has_service_role",
    "require_service_role",
]


def get_sql_pool(request: Request) -> Optional[SqlPool]:
    """Pool handle owned by the application state; None when direct SQL is disabled."""
    return getattr(request.app.state, "sql_pool", None)


def has_service_role() -> bool:
    return settings.has_service_role


def require_service_role(enabled: bool = Depends(has_service_role)) -> bool:
    """Dependency guarding admin/debug endpoints"""
    if not enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service role key not configured on server"
        )
    return True
