"""
Pydantic schemas for pipeline results and API responses
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import datetime, timezone
from schemas.status import PipelineStage


class PipelineResult(BaseModel):
    """Outcome of a load or of a whole run"""
    success: bool
    message: str
    counts: Dict[str, int] = Field(default_factory=dict)


class RunAcceptedResponse(BaseModel):
    """Response for a run request; the run itself continues in the background"""
    accepted: bool
    message: str


class ClearResponse(BaseModel):
    """Response for clearing all customer tables"""
    success: bool
    message: str


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall system status: healthy, unhealthy")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    database_connected: bool
    pipeline_stage: PipelineStage
    pipeline_running: bool = False
    error: Optional[str] = None
