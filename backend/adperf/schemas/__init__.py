"""
Pydantic schemas organized by domain.
"""

from .performance import (
    AggregationLevel,
    PerformanceRecord,
    AggregateSummary,
    CampaignSummary,
    AdSetSummary,
    AdSummary,
    DailySummary,
    PlatformSummary,
    OverviewSummary,
    DateRange,
    StoreSummary,
    UpsertResult,
)

from .dashboard import (
    SortKey,
    SortDirection,
    FilterConfig,
    SortConfig,
    DashboardState,
    DashboardView,
)

from .ingestion import (
    RejectedRowInfo,
    IngestionResponse,
)

__all__ = [
    "AggregationLevel",
    "PerformanceRecord",
    "AggregateSummary",
    "CampaignSummary",
    "AdSetSummary",
    "AdSummary",
    "DailySummary",
    "PlatformSummary",
    "OverviewSummary",
    "DateRange",
    "StoreSummary",
    "UpsertResult",
    "SortKey",
    "SortDirection",
    "FilterConfig",
    "SortConfig",
    "DashboardState",
    "DashboardView",
    "RejectedRowInfo",
    "IngestionResponse",
]
