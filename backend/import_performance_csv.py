#!/usr/bin/env python3
"""
Bulk import Ads Manager CSV exports into the ad_performance_data table.

Usage:
    python import_performance_csv.py exports/*.csv
    python import_performance_csv.py --full-refresh export.csv
    python import_performance_csv.py --strict export.csv
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from adperf.config import get_settings
from adperf.database import SessionLocal, engine, Base
from adperf.errors import MalformedInputError, PartialWriteError
from adperf.models import AdPerformanceRecord  # noqa: F401
from adperf.services.ingestion import IngestionOutcome, ingest_csv
from adperf.services.performance_store import PerformanceStore


async def import_file(path: Path, store: PerformanceStore, incremental: bool, strict: bool = False) -> bool:
    """
    Import one file, printing its report.

    Returns False when nothing was saved because of an error, or, in strict
    mode, when the store rejected any row.
    """
    print(f"Importing: {path.name}")
    try:
        report = await ingest_csv(path.read_bytes(), store, incremental=incremental)
    except MalformedInputError as e:
        print(f"  ✗ Unreadable file: {e}")
        return False

    parse_report = report.parse_report
    print(f"  → Rows parsed:        {parse_report.total_rows}")
    print(f"  → Rows rejected:      {parse_report.rejected_rows}")
    print(f"  → Values coerced:     {parse_report.coerced_values}")
    print(f"  → Already stored:     {report.skipped_existing}")
    print(f"  → Rows written:       {report.upsert.written}")
    for rejected in parse_report.rejected:
        print(f"    - {rejected.reason}")
    for warning in report.warnings:
        print(f"  ! {warning}")

    if report.outcome == IngestionOutcome.STORE_UNREACHABLE:
        print(f"  ✗ {report.message} {report.error}")
        return False
    if strict:
        try:
            report.upsert.raise_for_errors()
        except PartialWriteError as e:
            print(f"  ✗ {e}")
            return False
    print(f"  ✓ {report.message}")
    return True


async def run(paths, incremental: bool, strict: bool = False) -> int:
    settings = get_settings()
    store = PerformanceStore(
        SessionLocal,
        page_size=settings.store_page_size,
        write_chunk_size=settings.upsert_chunk_size,
    )

    failures = 0
    for path in paths:
        if not await import_file(path, store, incremental, strict):
            failures += 1
        print()

    summary = await store.summarize()
    print("=" * 80)
    print("Import Summary")
    print("=" * 80)
    print(f"Files processed:   {len(paths)}")
    print(f"Files failed:      {failures}")
    print(f"Rows in store:     {summary.total_records}")
    if summary.date_range:
        print(f"Date range:        {summary.date_range.start} - {summary.date_range.end}")
    print(f"Campaigns:         {summary.campaign_count}")
    print(f"Ad sets:           {summary.ad_set_count}")
    print(f"Ads:               {summary.ad_count}")
    print("=" * 80)
    return failures


def main():
    parser = argparse.ArgumentParser(description='Import Ads Manager CSV exports')
    parser.add_argument('files', nargs='+', type=Path, help='CSV export files')
    parser.add_argument(
        '--full-refresh',
        action='store_true',
        help='Upsert every row instead of skipping rows that are already stored',
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Count a file as failed when the store rejects any of its rows',
    )
    args = parser.parse_args()

    missing = [p for p in args.files if not p.exists()]
    if missing:
        for path in missing:
            print(f"❌ File not found: {path}")
        sys.exit(1)

    Base.metadata.create_all(bind=engine)

    failures = asyncio.run(run(args.files, incremental=not args.full_refresh, strict=args.strict))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
