"""
Core utilities and configuration for the customer ETL system.

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session management
    exceptions: Exception hierarchy for stage faults
    logging: Logging configuration
    notifier: Failure notifications sent when a stage gives up

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import SourceNotFoundError, LoadFaultError
    from core.logging import setup_logging
    from core.notifier import notify
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    "notify",
    # Exceptions
    "ETLException",
    "ExtractionError",
    "SourceNotFoundError",
    "StreamFaultError",
    "TransformationError",
    "TransformFaultError",
    "LoadError",
    "LoadFaultError",
    "ClearFaultError",
    "PipelineBusyError",
]
