"""
Ad performance routes: CSV upload, raw records, dashboard roll-ups and store health.
"""
from datetime import date, timedelta
from typing import List, Optional, Tuple
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from adperf.config import get_settings
from adperf.database import SessionLocal
from adperf.errors import MalformedInputError, StoreUnavailableError
from adperf.schemas import (
    DashboardState,
    DashboardView,
    FilterConfig,
    IngestionResponse,
    PerformanceRecord,
    RejectedRowInfo,
    SortConfig,
    SortDirection,
    SortKey,
    StoreSummary,
)
from adperf.services.dashboard import build_dashboard_view
from adperf.services.ingestion import IngestionOutcome, IngestionReport, ingest_csv
from adperf.services.performance_store import PerformanceStore

router = APIRouter(prefix="/api/performance", tags=["performance"])
logger = logging.getLogger(__name__)


MAX_REJECTION_REASONS = 10

OUTCOME_STATUS_CODES = {
    IngestionOutcome.NO_VALID_ROWS: 400,
    IngestionOutcome.NOTHING_TO_IMPORT: 400,
    IngestionOutcome.STORE_UNREACHABLE: 503,
}


def get_performance_store() -> PerformanceStore:
    """Dependency for the performance store"""
    settings = get_settings()
    return PerformanceStore(
        SessionLocal,
        page_size=settings.store_page_size,
        write_chunk_size=settings.upsert_chunk_size,
    )


def default_window(today: date, lookback_days: int) -> Tuple[str, str]:
    """(start, end) covering the last lookback_days days up to today."""
    start = today - timedelta(days=lookback_days)
    return start.isoformat(), today.isoformat()


def _parse_campaign_ids(campaign_ids: Optional[str]) -> Optional[List[str]]:
    if not campaign_ids:
        return None
    ids = [c.strip() for c in campaign_ids.split(",") if c.strip()]
    return ids or None


def _error_detail(report: IngestionReport) -> str:
    detail = report.message
    if report.error:
        detail = f"{detail} {report.error}"
    reasons = [r.reason for r in report.parse_report.rejected]
    if reasons:
        shown = "; ".join(reasons[:MAX_REJECTION_REASONS])
        hidden = len(reasons) - MAX_REJECTION_REASONS
        if hidden > 0:
            shown = f"{shown}; and {hidden} more"
        detail = f"{detail} Rejected rows: {shown}"
    return detail


def _to_response(report: IngestionReport) -> IngestionResponse:
    parse_report = report.parse_report
    errors = list(report.upsert.errors)
    if report.error:
        errors.append(report.error)
    return IngestionResponse(
        outcome=report.outcome.value,
        message=report.message,
        total_rows=parse_report.total_rows,
        accepted_rows=parse_report.accepted_rows,
        rejected_rows=[
            RejectedRowInfo(line_number=r.line_number, missing_fields=list(r.missing_fields))
            for r in parse_report.rejected
        ],
        coerced_values=parse_report.coerced_values,
        skipped_existing=report.skipped_existing,
        written=report.upsert.written,
        rejected_by_store=report.upsert.rejected,
        errors=errors,
        warnings=report.warnings,
    )


@router.post("/upload", response_model=IngestionResponse)
async def upload_performance_csv(
    file: UploadFile = File(...),
    incremental: bool = Form(True),
    store: PerformanceStore = Depends(get_performance_store),
):
    """
    Upload an Ads Manager CSV export.

    Rows already stored are skipped when incremental is true; otherwise every
    row is upserted. Returns 400 when the file is unreadable or yields nothing
    to write (the detail lists rejected rows), 503 when the store cannot be
    reached.
    """
    contents = await file.read()
    try:
        report = await ingest_csv(contents, store, incremental=incremental)
    except MalformedInputError as e:
        logger.warning("Rejected upload %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=str(e))

    status_code = OUTCOME_STATUS_CODES.get(report.outcome)
    if status_code:
        raise HTTPException(status_code=status_code, detail=_error_detail(report))
    return _to_response(report)


@router.get("/records", response_model=List[PerformanceRecord])
async def get_performance_records(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    campaign_ids: Optional[str] = Query(None, description="Comma-separated campaign IDs"),
    store: PerformanceStore = Depends(get_performance_store),
):
    """Every stored row in the range, newest day first."""
    try:
        return await store.read_range(start_date, end_date, _parse_campaign_ids(campaign_ids))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/dashboard", response_model=DashboardView)
async def get_dashboard(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    spend_min: Optional[float] = None,
    roas_min: Optional[float] = None,
    roas_max: Optional[float] = None,
    sort_key: SortKey = SortKey.SPEND,
    sort_direction: SortDirection = SortDirection.DESC,
    campaign_id: Optional[str] = None,
    ad_set_id: Optional[str] = None,
    store: PerformanceStore = Depends(get_performance_store),
):
    """
    Overview, campaign, ad set, ad and daily views.

    Without date bounds the window defaults to the last DEFAULT_LOOKBACK_DAYS days.
    """
    if not start_date and not end_date:
        start_date, end_date = default_window(date.today(), get_settings().default_lookback_days)

    try:
        records = await store.read_range(start_date, end_date)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    state = DashboardState(
        filters=FilterConfig(
            date_start=start_date,
            date_end=end_date,
            spend_min=spend_min,
            roas_min=roas_min,
            roas_max=roas_max,
        ),
        sort=SortConfig(key=sort_key, direction=sort_direction),
        campaign_id=campaign_id,
        ad_set_id=ad_set_id,
    )
    return build_dashboard_view(records, state)


@router.get("/summary", response_model=StoreSummary)
async def get_store_summary(store: PerformanceStore = Depends(get_performance_store)):
    try:
        return await store.summarize()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/dates", response_model=List[str])
async def get_available_dates(store: PerformanceStore = Depends(get_performance_store)):
    try:
        return await store.available_dates()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
