"""
Custom exceptions for the customer ETL pipeline with structured error context.

Every stage catches its own faults, notifies, and surfaces one of these to
the caller. Nothing in the pipeline retries; recovery is a fresh run.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   ├── SourceNotFoundError
    │   └── StreamFaultError
    ├── TransformationError
    │   └── TransformFaultError
    ├── LoadError
    │   ├── LoadFaultError
    │   └── ClearFaultError
    └── PipelineBusyError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information (stage, file path, table, etc.)
        original_exception: The original exception that was caught (if any)
    """
    
    stage: Optional[str] = None
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)
        
        self.context["error_timestamp"] = self.timestamp.isoformat()
        
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception
    
    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"
        
        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        
        return base_msg
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "stage": self.stage,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for source file extraction failures."""
    stage = "Extraction"


class SourceNotFoundError(ExtractionError):
    """
    Raised when the source file is missing or unreadable.
    
    Context should include:
        - file_path: Path that was requested
    """
    pass


class StreamFaultError(ExtractionError):
    """
    Raised when a row cannot be parsed while streaming the source file.
    
    Context should include:
        - file_path: Path to the CSV file
        - rows_read: Rows buffered before the fault (all discarded)
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for cleaning/aggregation failures."""
    stage = "Transformation"


class TransformFaultError(TransformationError):
    """
    Raised when a record has an unexpected shape during cleaning.
    
    Context should include:
        - record_index: Position of the offending record in the input
        - customer_id: Identifier of the record (if readable)
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for database write failures."""
    stage = "Loading"


class LoadFaultError(LoadError):
    """
    Raised when any insert or the commit fails; the transaction is rolled back.
    
    Context should include:
        - table_name: Table being written when the fault occurred
        - operation: INSERT, UPSERT, SELECT or COMMIT
    """
    pass


class ClearFaultError(LoadError):
    """Raised when truncating the customer tables fails."""
    stage = "Clearing"


# ============================================================================
# Run Guard
# ============================================================================

class PipelineBusyError(ETLException):
    """Raised when a run is requested while another one is still active."""
    pass
