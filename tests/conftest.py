"""
Pytest configuration and fixtures
"""

import csv
import os
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, patch
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import AsyncGenerator, Dict, List
from core.database import build_engine
from ingestion.status import StatusRegister
from models import Base

# Set TEST_DATABASE_URL to run against PostgreSQL instead of a temporary SQLite file
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

SOURCE_HEADER = [
    "Index", "Customer Id", "First Name", "Last Name", "Company", "City",
    "Country", "Phone 1", "Phone 2", "Email", "Subscription Date", "Website",
]


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create test database engine with all tables"""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'etl_test.db'}"
    engine = build_engine(url)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine"""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def register():
    """Fresh status register per test"""
    return StatusRegister()


@pytest.fixture
def mock_notify():
    """Capture failure notifications from every stage"""
    mock = AsyncMock(return_value=False)
    with patch("ingestion.extractors.csv_extractor.notify", mock), \
            patch("ingestion.loaders.customer_loader.notify", mock), \
            patch("ingestion.runner.notify", mock):
        yield mock


def make_raw(customer_id: str, **overrides) -> Dict[str, str]:
    """Raw record as produced by the extractor"""
    record = {
        "index": "1",
        "customer_id": customer_id,
        "first_name": "Sheryl",
        "last_name": "Baxter",
        "company": "Rasmussen Group",
        "city": "East Leonard",
        "country": "Chile",
        "phone_1": "229.077.5154",
        "phone_2": "397.884.0519x718",
        "email": f"{customer_id.lower()}@mail.com",
        "subscription_date": "8/24/2020",
        "website": "http://www.stephenson.com/",
    }
    record.update(overrides)
    return record


@pytest.fixture
def raw_factory():
    return make_raw


@pytest.fixture
def mock_raw_records() -> List[Dict[str, str]]:
    """Five raw records, one duplicated id and one with gaps"""
    return [
        make_raw("DD37Cf93aecA6Dc"),
        make_raw("1Ef7b82A4CAAD10", first_name="Preston", company="Vega-Gentry", country="Djibouti",
                 phone_1="(757)324-8634", phone_2="N/A", subscription_date="2021-04-23"),
        make_raw("DD37Cf93aecA6Dc", first_name="Duplicate"),
        make_raw("6F94879bDAfE5a6", company="N/A", country="N/A", email="not-an-email",
                 phone_1="+1-213-212-0464x0742", website="N/A", subscription_date="N/A"),
        make_raw("5Cef8BFA16c5e3c", company="Rasmussen Group", country="Chile"),
    ]


@pytest.fixture
def write_csv(tmp_path):
    """Write rows (lists in SOURCE_HEADER order) to a CSV and return its path"""
    def _write(rows: List[List[str]], header: List[str] = SOURCE_HEADER, name: str = "customers.csv"):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return path
    return _write


@pytest.fixture
def sample_csv(write_csv):
    """Small source file in the dataset's column layout"""
    rows = [
        ["1", "DD37Cf93aecA6Dc", "Sheryl", "Baxter", "Rasmussen Group", "East Leonard", "Chile",
         "229.077.5154", "397.884.0519x718", "zunigavanessa@smith.info", "8/24/2020", "http://www.stephenson.com/"],
        ["2", "1Ef7b82A4CAAD10", "Preston", "Lozano", "Vega-Gentry", "East Jimmychester", "Djibouti",
         "5153435776", "686-620-1820x944", "vmata@colon.com", "4/23/2021", "http://www.hobbs.com/"],
        ["3", "6F94879bDAfE5a6", "Roy", "Berry", "", "Isabelborough", "Antigua and Barbuda",
         "+1-539-402-0259", "", "", "3/25/2020", ""],
        ["4", "DD37Cf93aecA6Dc", "Sheryl", "Baxter", "Rasmussen Group", "East Leonard", "Chile",
         "229.077.5154", "397.884.0519x718", "zunigavanessa@smith.info", "8/24/2020", "http://www.stephenson.com/"],
        ["5", "5Cef8BFA16c5e3c", "Linda", "Olsen", "Dominguez, Mcmillan and Donovan", "Bensonview", "Chile",
         "001-808-617-6467x12895", "+1-813-324-8756", "stanleyblackwell@benson.org", "6/2/2020",
         "http://www.good-lyons.com/"],
    ]
    return write_csv(rows)
