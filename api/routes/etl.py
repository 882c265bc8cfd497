"""
Pipeline control endpoints: start a run, poll status, clear tables
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from api.dependencies import get_runner
from core.exceptions import ClearFaultError, PipelineBusyError
from ingestion.runner import ETLRunner
from schemas.api import RunAcceptedResponse, ClearResponse
from schemas.status import ETLStatus
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ETL"])


@router.post(
    "/load-data",
    response_model=RunAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def load_data(
    background_tasks: BackgroundTasks,
    runner: ETLRunner = Depends(get_runner)
):
    """
    Start an ETL run in the background.
    
    Poll GET /etl/status for progress. Returns 409 while a run is claimed or active.
    """
    try:
        runner.claim()
    except PipelineBusyError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )
    
    background_tasks.add_task(runner.run_claimed)
    logger.info("ETL run accepted")
    
    return RunAcceptedResponse(accepted=True, message="ETL pipeline started")


@router.get("/etl/status", response_model=ETLStatus)
async def get_status(runner: ETLRunner = Depends(get_runner)):
    """Current pipeline status snapshot"""
    return runner.get_status()


@router.get("/clear-all-data", response_model=ClearResponse)
@router.delete("/etl/data", response_model=ClearResponse)
async def clear_all_data(runner: ETLRunner = Depends(get_runner)):
    """Remove every row from the customer tables"""
    if runner.is_running:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot clear tables while the ETL pipeline is running"
        )
    
    try:
        await runner.clear_all()
    except ClearFaultError as e:
        logger.error(f"Clear failed: {e.message}", extra={"error_context": e.to_dict()})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{e.message}: {e.original_exception}"
        )
    
    return ClearResponse(success=True, message="All customer tables cleared")
