"""
Health check endpoint with database and pipeline status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from api.dependencies import get_db, get_runner
from ingestion.runner import ETLRunner
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    runner: ETLRunner = Depends(get_runner)
):
    """
    Health check endpoint.
    
    Returns:
    - Database connectivity status
    - Current pipeline stage and whether a run is active
    """
    db_connected = False
    error = None
    
    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")
        error = str(e)
    
    return HealthCheckResponse(
        status="healthy" if db_connected else "unhealthy",
        database_connected=db_connected,
        pipeline_stage=runner.get_status().stage,
        pipeline_running=runner.is_running,
        error=error
    )
