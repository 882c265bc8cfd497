"""
Pydantic schemas for data validation and serialization.

Schemas:
    customer: Cleaned customer records and the transform stage output
    status: Pipeline stage enum and the immutable status snapshot
    api: Pipeline results and HTTP response bodies

Usage:
    from schemas.customer import CustomerRecord, TransformResult, SENTINEL
    from schemas.status import ETLStatus, PipelineStage
    from schemas.api import PipelineResult
"""

__all__ = [
    "SENTINEL",
    "SOURCE_COLUMNS",
    "CustomerRecord",
    "TransformResult",
    "PipelineStage",
    "StageProgress",
    "ETLStatus",
    "PipelineResult",
    "RunAcceptedResponse",
    "ClearResponse",
    "HealthCheckResponse",
]
