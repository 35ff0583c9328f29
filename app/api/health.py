"""Health check endpoint"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.core.config import settings
from app.core.database import get_db
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database ping"""
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
        "components": {"database": {"status": "healthy"}}
    }

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        health_status["status"] = "unhealthy"
        health_status["components"]["database"] = {"status": "unhealthy", "error": str(e)}
        return JSONResponse(status_code=503, content=health_status)

    return health_status
