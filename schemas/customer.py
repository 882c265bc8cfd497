"""
Pydantic schemas for customer records flowing between pipeline stages
"""

from pydantic import BaseModel, Field
from typing import List, Dict, Set

# Placeholder for any missing or empty source field
SENTINEL = "N/A"

# Normalized source header -> required in every raw record
SOURCE_COLUMNS = [
    "customer_id",
    "first_name",
    "last_name",
    "company",
    "city",
    "country",
    "phone_1",
    "phone_2",
    "email",
    "subscription_date",
    "website",
]


class CustomerRecord(BaseModel):
    """
    A cleaned customer row, ready to be split across the relational tables.
    
    Every field is a string; fields missing in the source carry SENTINEL.
    """
    
    customer_id: str = Field(..., min_length=1)
    first_name: str = SENTINEL
    last_name: str = SENTINEL
    city: str = SENTINEL
    country: str = SENTINEL
    email: str = SENTINEL
    phone_1: str = SENTINEL
    phone_2: str = SENTINEL
    company: str = SENTINEL
    subscription_date: str = SENTINEL
    website: str = SENTINEL
    
    class Config:
        str_strip_whitespace = True


class TransformResult(BaseModel):
    """Output of the transform stage, handed to the loader as a whole"""
    
    cleaned: List[CustomerRecord] = Field(default_factory=list)
    companies: Set[str] = Field(default_factory=set)
    country_counts: Dict[str, int] = Field(default_factory=dict)
    avg_per_country: float = 0.0
    duplicates: int = 0
    missing_fields: Dict[str, int] = Field(default_factory=dict)
