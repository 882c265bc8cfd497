"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, etl
from core.config import settings
from core.logging import setup_logging
import logging

# Configure logging
setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Customer ETL Backend API",
    description="Loads the customer CSV into a normalized schema and reports progress",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers
app.include_router(health.router)
app.include_router(etl.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Customer ETL Backend API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info(f"Source file: {settings.SOURCE_FILE_PATH}")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Customer ETL Backend API")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Customer ETL Backend API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "run": "/load-data",
            "status": "/etl/status",
            "clear": "/clear-all-data"
        }
    }
