"""
Shared fixtures: an in-memory store and record/CSV builders.
"""
import os

# adperf.database builds its engine at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("DATABASE_PUBLIC_URL", None)

import csv
import io

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adperf.database import Base
from adperf.models import AdPerformanceRecord  # noqa: F401
from adperf.schemas.performance import PerformanceRecord
from adperf.services.performance_store import PerformanceStore


CSV_HEADERS = [
    "Campaign name",
    "Ad set name",
    "Campaign ID",
    "Placement",
    "Ad name",
    "Ad set ID",
    "Ad ID",
    "Platform",
    "Delivery status",
    "Delivery level",
    "Reach",
    "Impressions",
    "Frequency",
    "Results",
    "Amount spent (USD)",
    "Cost per result",
    "Starts",
    "Ends",
    "Purchase ROAS (return on ad spend)",
    "CTR (all)",
    "Result rate",
    "Reporting starts",
    "Reporting ends",
    "Day",
]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return PerformanceStore(session_factory, page_size=50, write_chunk_size=20)


@pytest.fixture
def make_record():
    def _make(**overrides) -> PerformanceRecord:
        values = {
            "campaign_id": "c1",
            "campaign_name": "Spring Sale",
            "ad_set_id": "s1",
            "ad_set_name": "Lookalike 1%",
            "ad_id": "a1",
            "ad_name": "Video A",
            "placement": "feed",
            "platform": "facebook",
            "delivery_status": "active",
            "delivery_level": "ad",
            "day": "2024-03-01",
            "reach": 800,
            "impressions": 1000,
            "results": 5,
            "amount_spent": 10.0,
            "purchase_roas": 2.0,
            "ctr_all": 1.5,
        }
        values.update(overrides)
        return PerformanceRecord(**values)

    return _make


@pytest.fixture
def make_csv():
    """Build an export from row dicts keyed by CSV header; missing cells are empty."""
    def _make(rows, headers=CSV_HEADERS) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow({h: row.get(h, "") for h in headers})
        return buffer.getvalue()

    return _make


@pytest.fixture
def csv_row():
    def _make(**overrides) -> dict:
        row = {
            "Campaign name": "Spring Sale",
            "Ad set name": "Lookalike 1%",
            "Campaign ID": "c1",
            "Placement": "feed",
            "Ad name": "Video A",
            "Ad set ID": "s1",
            "Ad ID": "a1",
            "Platform": "facebook",
            "Delivery status": "active",
            "Delivery level": "ad",
            "Reach": "800",
            "Impressions": "1,000",
            "Results": "5",
            "Amount spent (USD)": "$10.00",
            "Purchase ROAS (return on ad spend)": "2.0",
            "CTR (all)": "1.5%",
            "Day": "2024-03-01",
        }
        row.update(overrides)
        return row

    return _make
