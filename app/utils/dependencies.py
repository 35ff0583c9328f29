"""
Common dependencies for FastAPI
"""

from fastapi import Query, Request
import uuid

from app.core.config import settings
from .pagination import PaginationParams

def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size")
) -> PaginationParams:
    """Get pagination parameters from query"""
    return PaginationParams(page=page, size=size)

def get_session_id(request: Request) -> str:
    """
    Stable anonymous identifier for this browser session

    Minted on first use and kept in the signed session cookie.
    """
    session_id = request.session.get("session_id")
    if not session_id:
        session_id = uuid.uuid4().hex
        request.session["session_id"] = session_id
    return session_id
