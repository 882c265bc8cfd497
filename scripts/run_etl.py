"""
Script to run the customer ETL pipeline once from the command line
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.logging import setup_logging
from core.database import engine
from ingestion.runner import etl_runner

logger = logging.getLogger(__name__)


async def run_etl(source_path: str, clear_first: bool) -> bool:
    """Run ETL for the configured (or given) source file"""
    try:
        if clear_first:
            logger.info("Clearing customer tables before run")
            await etl_runner.clear_all()
        
        result = await etl_runner.run(source_path)
        status = etl_runner.get_status()
        
        if result.success:
            logger.info(f"ETL completed: {result.message} {result.counts}")
            logger.info(f"Average customers per country: {status.avg_customers_per_country}")
        else:
            logger.error(f"ETL failed: {result.message}")
        
        return result.success
    
    except Exception as e:
        logger.error(f"ETL pipeline error: {str(e)}")
        return False
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load the customer CSV into the database")
    parser.add_argument("--source", default=settings.SOURCE_FILE_PATH, help="Path to the customer CSV")
    parser.add_argument("--clear", action="store_true", help="Truncate all customer tables first")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run")
    args = parser.parse_args()
    
    setup_logging(args.log_level)
    ok = asyncio.run(run_etl(args.source, args.clear))
    sys.exit(0 if ok else 1)
