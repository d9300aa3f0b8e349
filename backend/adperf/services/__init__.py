"""
Ad performance services: parsing, de-duplication, roll-ups, selection and storage.
"""
from adperf.services.aggregation import aggregate, daily_timeline, summarize_records
from adperf.services.csv_parser import parse_performance_csv
from adperf.services.dashboard import build_dashboard_view
from adperf.services.ingestion import IngestionOutcome, IngestionReport, ingest_csv
from adperf.services.performance_store import PerformanceStore

__all__ = [
    "aggregate",
    "daily_timeline",
    "summarize_records",
    "parse_performance_csv",
    "build_dashboard_view",
    "IngestionOutcome",
    "IngestionReport",
    "ingest_csv",
    "PerformanceStore",
]
