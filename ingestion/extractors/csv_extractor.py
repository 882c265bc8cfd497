"""
Streaming CSV extractor for the customer dataset
"""

import asyncio
import os
import time
import pandas as pd
from typing import List, Dict, Optional
from pathlib import Path
from core.config import settings
from core.exceptions import SourceNotFoundError, StreamFaultError
from core.notifier import notify
from ingestion.status import StatusRegister, status_register
from schemas.customer import SENTINEL, SOURCE_COLUMNS
from schemas.status import PipelineStage
import logging

logger = logging.getLogger(__name__)

RawRecord = Dict[str, str]


class CSVExtractor:
    """
    Read the customer CSV into an in-memory buffer of raw records.
    
    Supports:
    - Chunked reads in a worker thread (status polls stay responsive)
    - Header normalization ("Customer Id" -> "customer_id")
    - Sentinel fill for absent or blank fields
    
    Extraction is all-or-nothing: a bad row discards everything read so far.
    """
    
    def __init__(
        self,
        file_path: Optional[str] = None,
        chunk_size: Optional[int] = None,
        register: Optional[StatusRegister] = None
    ):
        self.file_path = Path(file_path or settings.SOURCE_FILE_PATH)
        self.chunk_size = chunk_size or settings.ETL_BATCH_SIZE
        self.status = register or status_register
    
    async def extract(self, source_path: Optional[str] = None) -> List[RawRecord]:
        """
        Stream the source file into a list of raw records (source order, duplicates kept).
        
        Args:
            source_path: Overrides the configured file path
        
        Raises:
            SourceNotFoundError: File missing or unreadable
            StreamFaultError: A row could not be parsed
        """
        path = Path(source_path) if source_path else self.file_path
        self.status.reset(PipelineStage.EXTRACTING, f"Extracting {path.name}")
        
        if not path.is_file() or not os.access(path, os.R_OK):
            logger.error(f"Source file not found or unreadable: {path}")
            await notify("Extraction")
            raise SourceNotFoundError(
                f"Source file not found: {path}",
                context={"file_path": str(path)}
            )
        
        logger.info(f"Reading CSV from {path}")
        
        started = time.perf_counter()
        records: List[RawRecord] = []
        
        try:
            reader = await asyncio.to_thread(self._open_reader, path)
            with reader:
                while True:
                    chunk = await asyncio.to_thread(next, reader, None)
                    if chunk is None:
                        break
                    records.extend(self._clean_chunk(chunk))
                    self.status.update(message=f"Extracting... {len(records)} rows read")
        
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
            rows_read = len(records)
            records = []
            logger.error(f"Stream fault after {rows_read} rows of {path}: {str(e)}")
            await notify("Extraction")
            raise StreamFaultError(
                f"Failed to read {path.name}",
                context={"file_path": str(path), "rows_read": rows_read},
                original_exception=e
            )
        
        duration = time.perf_counter() - started
        message = f"Extracted {len(records)} records in {duration:.2f}s"
        
        self.status.update(stage=PipelineStage.EXTRACTED, message=message)
        self.status.set_progress("extract", 100)
        logger.info(message)
        
        return records
    
    def _open_reader(self, path: Path):
        return pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            chunksize=self.chunk_size,
            skipinitialspace=True,
        )
    
    @staticmethod
    def _clean_chunk(chunk: pd.DataFrame) -> List[RawRecord]:
        """Normalize headers, add missing columns, fill blanks with the sentinel"""
        chunk.columns = chunk.columns.str.strip().str.lower().str.replace(" ", "_")
        
        for column in SOURCE_COLUMNS:
            if column not in chunk.columns:
                chunk[column] = SENTINEL
        
        # Short rows come back as NaN even with keep_default_na=False
        chunk = chunk.fillna(SENTINEL)
        chunk = chunk.apply(lambda col: col.str.strip())
        chunk = chunk.replace("", SENTINEL)
        
        return chunk.to_dict(orient="records")
