"""
Process-wide status register for the ETL pipeline.

Pollers call ``read()`` at any time; only the active run writes. Each write
builds a fresh ``ETLStatus`` and swaps the reference, so readers never lock
and never observe a half-applied update.
"""

from typing import Optional
from datetime import datetime, timezone
import threading
import logging

from schemas.status import ETLStatus, PipelineStage, StageProgress, TERMINAL_STAGES

logger = logging.getLogger(__name__)


class StatusRegister:
    """Copy-on-write holder of the current ETLStatus snapshot"""
    
    def __init__(self):
        self._status = ETLStatus()
        self._write_lock = threading.Lock()
    
    def read(self) -> ETLStatus:
        """Return the current snapshot"""
        return self._status
    
    def reset(self, stage: PipelineStage, message: str) -> ETLStatus:
        """Start a new run from a blank status"""
        with self._write_lock:
            self._status = ETLStatus(stage=stage, message=message)
            return self._status
    
    def update(self, **fields) -> ETLStatus:
        """Replace top-level fields (stage, message, avg_customers_per_country, ...)"""
        with self._write_lock:
            fields["updated_at"] = datetime.now(timezone.utc)
            self._status = self._status.model_copy(update=fields)
            return self._status
    
    def set_progress(
        self,
        stage_key: str,
        percent: float,
        table: Optional[str] = None,
        message: Optional[str] = None
    ) -> ETLStatus:
        """
        Record progress for one stage.
        
        Args:
            stage_key: "extract", "transform" or "load"
            percent: 0-100
            table: Table name, required for "load"
            message: Optional new status message
        """
        percent = round(min(max(percent, 0.0), 100.0), 2)
        
        with self._write_lock:
            current = self._status.progress
            if stage_key == "load":
                if table is None:
                    raise ValueError("Load progress is tracked per table")
                load = dict(current.load)
                load[table] = percent
                progress = current.model_copy(update={"load": load})
            elif stage_key in ("extract", "transform"):
                progress = current.model_copy(update={stage_key: percent})
            else:
                raise ValueError(f"Unknown stage key: {stage_key}")
            
            update = {"progress": progress, "updated_at": datetime.now(timezone.utc)}
            if message is not None:
                update["message"] = message
            self._status = self._status.model_copy(update=update)
            return self._status
    
    def fail(self, stage: str, reason: str) -> ETLStatus:
        """Move to the terminal Failed stage, keeping progress for diagnosis"""
        logger.error(f"ETL run failed during {stage}: {reason}")
        return self.update(
            stage=PipelineStage.FAILED,
            message=f"ETL pipeline failed during {stage}",
            failed_stage=stage,
            error=reason,
        )
    
    @property
    def is_terminal(self) -> bool:
        return self._status.stage in TERMINAL_STAGES


status_register = StatusRegister()
