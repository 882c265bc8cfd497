# ============================================================================
# File: ingestion/runner.py
# Description: Customer ETL orchestrator with run guard and failure status
# ============================================================================
"""
ETL Runner - Orchestrates Extract, Transform, Load for the customer dataset.

This module provides:
- A single-run guard (a second run is rejected while one is claimed or active)
- Sequential extract -> transform -> load with ownership hand-off between stages
- A terminal Failed status whenever any stage gives up
- Table clearing for the service layer
"""

from typing import Optional, Callable
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.database import async_session_maker
from core.notifier import notify
from core.exceptions import (
    ETLException,
    PipelineBusyError,
)
from ingestion.extractors.csv_extractor import CSVExtractor
from ingestion.transformers.customer_transformer import CustomerTransformer
from ingestion.loaders.customer_loader import CustomerLoader
from ingestion.status import StatusRegister, status_register
from schemas.api import PipelineResult
from schemas.status import ETLStatus

logger = logging.getLogger(__name__)


class ETLRunner:
    """
    Customer ETL Orchestrator

    Responsibilities:
    - Orchestrate Extract → Transform → Load
    - Allow at most one active run
    - Leave the status register in Complete or Failed when a run ends
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session_maker,
        extractor: Optional[CSVExtractor] = None,
        transformer: Optional[CustomerTransformer] = None,
        register: Optional[StatusRegister] = None
    ):
        self.session_factory = session_factory
        self.status = register or status_register
        self.extractor = extractor or CSVExtractor(register=self.status)
        self.transformer = transformer or CustomerTransformer(register=self.status)
        self._active = False

    @property
    def is_running(self) -> bool:
        """True from a successful claim() until the claimed run finishes"""
        return self._active

    def get_status(self) -> ETLStatus:
        """Current status snapshot"""
        return self.status.read()

    def claim(self) -> None:
        """
        Reserve the single run slot.

        The check and the reservation happen without yielding to the event
        loop, so callers that schedule the run for later (background tasks)
        are already visible to the next request.

        Raises:
            PipelineBusyError: A run is already claimed or active
        """
        if self._active:
            raise PipelineBusyError("ETL pipeline is already running")
        self._active = True

    async def run(self, source_path: Optional[str] = None) -> PipelineResult:
        """
        Run the full pipeline once.

        Returns:
            PipelineResult with success flag and message. A second call while a
            run is active returns success=False without touching the status.
        """
        try:
            self.claim()
        except PipelineBusyError as e:
            logger.warning(e.message)
            return PipelineResult(success=False, message=e.message)

        return await self.run_claimed(source_path)

    async def run_claimed(self, source_path: Optional[str] = None) -> PipelineResult:
        """Run after a successful claim(); the slot is released when the run ends"""
        try:
            return await self._run_stages(source_path)
        finally:
            self._active = False

    async def _run_stages(self, source_path: Optional[str]) -> PipelineResult:
        stage = "Extraction"

        try:
            # --------------------------------------------------
            # PHASE 1: EXTRACTION
            # --------------------------------------------------
            logger.info("Starting extraction")
            records = await self.extractor.extract(source_path)
            logger.info(f"Extracted {len(records)} records")

            # --------------------------------------------------
            # PHASE 2: TRANSFORMATION
            # --------------------------------------------------
            stage = "Transformation"
            transformed = self.transformer.transform(records)
            del records

            # --------------------------------------------------
            # PHASE 3: LOAD (SINGLE TRANSACTION)
            # --------------------------------------------------
            stage = "Loading"
            async with self.session_factory() as session:
                loader = CustomerLoader(session, register=self.status)
                result = await loader.load(transformed)

            if not result.success:
                self.status.fail(stage, result.message)
                return result

            logger.info(f"ETL run completed: {result.message}")
            return PipelineResult(
                success=True,
                message=result.message,
                counts={**result.counts, "duplicates": transformed.duplicates}
            )

        except ETLException as e:
            logger.error(
                f"ETL pipeline failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            self.status.fail(e.stage or stage, e.message)
            return PipelineResult(success=False, message=f"{e.stage or stage} failed: {e.message}")

        except Exception as e:
            logger.exception("Unexpected error in ETL pipeline")
            await notify(stage)
            wrapped = ETLException(
                "Unexpected error in ETL pipeline",
                context={"stage": stage},
                original_exception=e
            )
            self.status.fail(stage, f"{wrapped.message}: {str(e)}")
            return PipelineResult(success=False, message=f"{stage} failed: {str(e)}")

    async def clear_all(self) -> None:
        """
        Truncate every customer table.

        Raises:
            ClearFaultError: If the store cannot be cleared
        """
        async with self.session_factory() as session:
            await CustomerLoader(session, register=self.status).clear_all()


etl_runner = ETLRunner()
