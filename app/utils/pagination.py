"""
Pagination utilities
"""

from typing import Any, Dict
from pydantic import BaseModel, Field
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

class PaginationParams(BaseModel):
    """Pagination parameters"""
    page: int = Field(1, ge=1, description="Page number")
    size: int = Field(10, ge=1, le=100, description="Page size")

async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    size: int = 10
) -> Dict[str, Any]:
    """
    Paginate query results

    Args:
        db: Database session
        query: SQLAlchemy select of a single entity
        page: Page number
        size: Page size

    Returns:
        Dictionary with items, total, page, size and pages
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    pages = (total + size - 1) // size

    result = await db.execute(query.offset((page - 1) * size).limit(size))
    items = result.scalars().all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "size": size,
        "pages": pages
    }
