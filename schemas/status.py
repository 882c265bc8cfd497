"""
Pydantic schemas for the pipeline status snapshot
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import datetime, timezone
import enum


class PipelineStage(str, enum.Enum):
    """Stages a run moves through; Complete and Failed are terminal"""
    IDLE = "Idle"
    EXTRACTING = "Extracting"
    EXTRACTED = "Extracted"
    TRANSFORMING = "Transforming"
    TRANSFORMED = "Transformed"
    LOADING = "Loading"
    COMPLETE = "Complete"
    FAILED = "Failed"


TERMINAL_STAGES = {PipelineStage.COMPLETE, PipelineStage.FAILED}


class StageProgress(BaseModel):
    """Percent complete per stage; load is tracked per table"""
    extract: float = 0.0
    transform: float = 0.0
    load: Dict[str, float] = Field(default_factory=dict)
    
    class Config:
        frozen = True


class ETLStatus(BaseModel):
    """
    Immutable snapshot of the running (or last) pipeline.
    
    Writers never mutate a snapshot; they build a new one and swap it in,
    so a poller always sees a whole value.
    """
    stage: PipelineStage = PipelineStage.IDLE
    message: str = "Waiting for ETL run"
    progress: StageProgress = Field(default_factory=StageProgress)
    avg_customers_per_country: Optional[str] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    
    class Config:
        frozen = True
        use_enum_values = False
        json_schema_extra = {
            "example": {
                "stage": "Loading",
                "message": "Loading Customer Table",
                "progress": {
                    "extract": 100.0,
                    "transform": 100.0,
                    "load": {"Company Table": 100.0, "Customer Table": 45.0}
                },
                "avg_customers_per_country": "8196.72",
                "failed_stage": None,
                "error": None,
                "updated_at": "2024-01-15T10:30:00Z"
            }
        }
