"""
CSV upload pipeline: parse, drop rows already stored, upsert the rest.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from adperf.errors import StoreUnavailableError
from adperf.schemas.performance import UpsertResult
from adperf.services.csv_parser import ParseReport, parse_performance_csv
from adperf.services.deduplicator import IncrementalResult, filter_new_records
from adperf.services.performance_store import PerformanceStore

logger = logging.getLogger(__name__)


class IngestionOutcome(str, Enum):
    NO_VALID_ROWS = "no_valid_rows"
    NOTHING_TO_IMPORT = "nothing_to_import"
    IMPORTED = "imported"
    PARTIALLY_IMPORTED = "partially_imported"
    STORE_UNREACHABLE = "store_unreachable"


OUTCOME_MESSAGES = {
    IngestionOutcome.NO_VALID_ROWS: "No valid rows found. Every row is missing a campaign name, ad name or campaign ID.",
    IngestionOutcome.NOTHING_TO_IMPORT: "No new rows to import. The file is empty or every row is already stored.",
    IngestionOutcome.IMPORTED: "Import complete.",
    IngestionOutcome.PARTIALLY_IMPORTED: "Import finished, but some rows were rejected.",
    IngestionOutcome.STORE_UNREACHABLE: "The performance store is unreachable. Nothing was saved, please retry.",
}


@dataclass
class IngestionReport:
    outcome: IngestionOutcome
    parse_report: ParseReport
    skipped_existing: int = 0
    upsert: UpsertResult = field(default_factory=UpsertResult)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]


async def ingest_csv(
    raw: Union[str, bytes],
    store: PerformanceStore,
    incremental: bool = True,
) -> IngestionReport:
    """
    Import one export into the store.

    MalformedInputError from the parser propagates. A store failure during the
    write is reported as STORE_UNREACHABLE rather than raised.
    """
    parsed = parse_performance_csv(raw)
    report = IngestionReport(outcome=IngestionOutcome.NOTHING_TO_IMPORT, parse_report=parsed.report)

    if parsed.report.unknown_columns:
        report.warnings.append(f"Ignored unknown columns: {', '.join(parsed.report.unknown_columns)}")

    if not parsed.records:
        if parsed.report.has_rejections:
            report.outcome = IngestionOutcome.NO_VALID_ROWS
        logger.info("Upload contained no valid rows (%s rejected)", parsed.report.rejected_rows)
        return report

    if incremental:
        filtered: IncrementalResult = await filter_new_records(parsed.records, store)
        candidates = filtered.records
        report.skipped_existing = filtered.skipped
        if filtered.warning:
            report.warnings.append(filtered.warning)
    else:
        candidates = parsed.records

    if not candidates:
        logger.info("All %s rows are already stored", len(parsed.records))
        return report

    try:
        report.upsert = await store.upsert(candidates)
    except StoreUnavailableError as e:
        report.outcome = IngestionOutcome.STORE_UNREACHABLE
        report.error = str(e)
        return report

    if report.upsert.rejected or parsed.report.has_rejections:
        report.outcome = IngestionOutcome.PARTIALLY_IMPORTED
    else:
        report.outcome = IngestionOutcome.IMPORTED

    logger.info(
        "Ingestion %s: %s written, %s skipped as existing, %s rejected by parser, %s rejected by store",
        report.outcome.value,
        report.upsert.written,
        report.skipped_existing,
        parsed.report.rejected_rows,
        report.upsert.rejected,
    )
    return report
