"""
FastAPI dependencies
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from core.database import async_session_maker
from ingestion.runner import ETLRunner, etl_runner


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session per request"""
    async with async_session_maker() as session:
        yield session


def get_runner() -> ETLRunner:
    """The process-wide pipeline runner"""
    return etl_runner
