"""
WealthDesk - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import async_session_maker, close_db, init_db
from app.routers import (
    auth,
    bulk_operations,
    content,
    dashboard,
    master,
    reports,
    requests,
    sync,
    transactions,
)
from app.services.seed_service import seed_reference_data
from app.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    # Initialize database (dev only - use migrations in production)
    if settings.is_development:
        await init_db()
        logger.info("Database tables initialized")

    async with async_session_maker() as session:
        await seed_reference_data(session)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Client, ledger and request management for a wealth advisory desk",
    version="0.1.0",
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


# ===========================================
# API ROUTES
# ===========================================

@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
        "endpoints": {
            "auth": "/api/auth",
            "master": "/api/mst",
            "requests": "/api/requests",
            "transactions": "/api/transactions",
            "clients": "/api/clients",
            "sync": "/api/sync",
            "dashboard": "/api/dashboard",
            "reports": "/api/reports",
            "content": "/api/content",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.app_name,
    }


app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(master.router, prefix="/api/mst", tags=["Master Data"])
app.include_router(requests.router, prefix="/api/requests", tags=["Client Requests"])
app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(bulk_operations.router, prefix="/api/clients", tags=["Bulk Operations"])
app.include_router(sync.router, prefix="/api/sync", tags=["Sync"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(content.router, prefix="/api/content", tags=["Content"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
