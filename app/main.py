"""
Main FastAPI application
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.events import lifespan
from app.core.exceptions import register_exception_handlers
from app.core.middleware import setup_middleware
from app.middleware.rate_limit import limiter, custom_rate_limit_handler
from app.api.health import router as health_router
from app.api.v1 import api_router

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront API: carts, checkout, orders, discounts and loyalty points",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)

setup_middleware(app)
register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api/v1")
app.include_router(health_router)

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/api/docs",
        "health": "/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=None if settings.DEBUG else settings.WORKERS
    )
