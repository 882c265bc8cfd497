"""
ETL pipeline components for the customer dataset.

Modules:
    status: Process-wide, copy-on-write status register read by pollers
    batching: Batched async operation helper with progress reporting
    runner: Orchestrator that runs extract, transform and load once

Subpackages:
    extractors: Streaming CSV extractor
    transformers: Deduplication, cleanup and aggregation
    loaders: Transactional loader for the six customer tables

Architecture:
    The pipeline runs three sequential stages:

    1. Extract - Stream the CSV into a buffer of raw records (sentinel-filled)
    2. Transform - Deduplicate, clean dates/emails/phones, aggregate companies
       and countries
    3. Load - Insert companies, upsert customers, then insert dependents in
       batches, all in one transaction

    Every stage updates the status register; any stage failure sends a
    notification and leaves the register in the Failed stage.

Usage:
    from ingestion.runner import etl_runner

    result = await etl_runner.run()
    print(result.success, result.message)
    print(etl_runner.get_status())
"""

__all__ = [
    "ETLRunner",
    "StatusRegister",
    "apply_in_batches",
    "CSVExtractor",
    "CustomerTransformer",
    "CustomerLoader",
]
