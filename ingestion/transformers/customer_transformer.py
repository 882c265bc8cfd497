"""
Clean, deduplicate and aggregate extracted customer records
"""

from typing import Dict, Any, List, Optional, Sequence
from collections import Counter
from email_validator import validate_email, EmailNotValidError
from pydantic import ValidationError
from core.config import settings
from core.exceptions import TransformFaultError
from core.notifier import notify_nowait
from ingestion.status import StatusRegister, status_register
from schemas.customer import CustomerRecord, TransformResult, SENTINEL
from schemas.status import PipelineStage
import re
import logging

logger = logging.getLogger(__name__)

INVALID_EMAIL_PREFIX = "Invalid Email - "

_NON_PHONE_CHARS = re.compile(r"[^\d+]")


class CustomerTransformer:
    """
    Turn raw records into cleaned customer records plus aggregates.
    
    Handles:
    - Deduplication by customer_id (first occurrence wins)
    - M/D/YYYY -> YYYY-MM-DD subscription dates
    - Email syntax check (bad values are marked, never dropped)
    - Phone cleanup to digits with an optional leading "+"
    - Company set and per-country counts
    
    Records are walked in chunks only so progress can be reported; the
    result is the same as a single pass.
    """
    
    def __init__(
        self,
        chunk_size: Optional[int] = None,
        register: Optional[StatusRegister] = None
    ):
        self.chunk_size = chunk_size or settings.TRANSFORM_CHUNK_SIZE
        self.status = register or status_register
    
    def transform(self, records: Sequence[Dict[str, Any]]) -> TransformResult:
        """
        Clean a full buffer of raw records.
        
        Raises:
            TransformFaultError: A record could not be cleaned; no output is returned
        """
        self.status.update(
            stage=PipelineStage.TRANSFORMING,
            message=f"Transforming {len(records)} records"
        )
        
        seen_ids = set()
        duplicates = 0
        cleaned: List[CustomerRecord] = []
        companies = set()
        country_counts: Counter = Counter()
        missing_fields: Counter = Counter()
        
        total = len(records)
        
        for start in range(0, total, self.chunk_size):
            for index in range(start, min(start + self.chunk_size, total)):
                record = records[index]
                try:
                    customer_id = record["customer_id"]
                    if customer_id in seen_ids:
                        duplicates += 1
                        continue
                    seen_ids.add(customer_id)
                    
                    customer = self.clean_record(record)
                
                except (KeyError, TypeError, AttributeError, ValidationError) as e:
                    logger.error(f"Transform failed at record {index}: {str(e)}")
                    notify_nowait("Transformation")
                    raise TransformFaultError(
                        "Unexpected record shape during transformation",
                        context={
                            "record_index": index,
                            "customer_id": record.get("customer_id") if isinstance(record, dict) else None
                        },
                        original_exception=e
                    )
                
                for field, value in customer.model_dump().items():
                    if value == SENTINEL:
                        missing_fields[field] += 1
                
                if customer.company != SENTINEL:
                    companies.add(customer.company)
                if customer.country != SENTINEL:
                    country_counts[customer.country] += 1
                
                cleaned.append(customer)
            
            done = min(start + self.chunk_size, total)
            self.status.set_progress(
                "transform",
                done / total * 100,
                message=f"Transforming... {done}/{total} records"
            )
        
        avg_per_country = average_per_country(len(cleaned), len(country_counts))
        
        if duplicates:
            logger.info(f"Discarded {duplicates} duplicate customer records")
        if missing_fields:
            logger.info(f"Fields still missing after cleaning: {dict(missing_fields)}")
        
        self.status.update(
            stage=PipelineStage.TRANSFORMED,
            message=f"Transformed {len(cleaned)} records ({duplicates} duplicates removed)",
            avg_customers_per_country=f"{avg_per_country:.2f}"
        )
        self.status.set_progress("transform", 100)
        
        logger.info(
            f"Transformation complete: {len(cleaned)} customers, "
            f"{len(companies)} companies, {len(country_counts)} countries, "
            f"{avg_per_country:.2f} customers per country"
        )
        
        return TransformResult(
            cleaned=cleaned,
            companies=companies,
            country_counts=dict(country_counts),
            avg_per_country=avg_per_country,
            duplicates=duplicates,
            missing_fields=dict(missing_fields)
        )
    
    def clean_record(self, record: Dict[str, Any]) -> CustomerRecord:
        """Apply date, email and phone cleanup to one raw record"""
        return CustomerRecord(
            customer_id=record["customer_id"],
            first_name=record["first_name"],
            last_name=record["last_name"],
            city=record["city"],
            country=record["country"],
            email=clean_email(record["email"]),
            phone_1=clean_phone(record["phone_1"]),
            phone_2=clean_phone(record["phone_2"]),
            company=record["company"],
            subscription_date=normalize_date(record["subscription_date"]),
            website=record["website"],
        )


def normalize_date(value: str) -> str:
    """Rewrite M/D/YYYY as YYYY-MM-DD; anything else passes through"""
    if value == SENTINEL:
        return value
    
    parts = value.split("/")
    # isdigit alone accepts superscripts and other digits int() rejects
    if len(parts) != 3 or not all(p.strip().isascii() and p.strip().isdigit() for p in parts):
        return value
    
    month, day, year = (int(p) for p in parts)
    return f"{year:04d}-{month:02d}-{day:02d}"


def clean_email(value: str) -> str:
    """Return the email unchanged if syntactically valid, else mark it invalid"""
    try:
        validate_email(value, check_deliverability=False)
        return value
    except EmailNotValidError:
        return f"{INVALID_EMAIL_PREFIX}{value}"


def clean_phone(value: str) -> str:
    """Keep digits and a single leading '+'"""
    if value == SENTINEL:
        return value
    
    stripped = _NON_PHONE_CHARS.sub("", value)
    leading_plus = stripped.startswith("+")
    digits = stripped.replace("+", "")
    if not digits:
        return SENTINEL
    return f"+{digits}" if leading_plus else digits


def average_per_country(customer_count: int, country_count: int) -> float:
    """Customers per distinct country; 0 when no country was seen"""
    if country_count == 0:
        return 0.0
    return customer_count / country_count
