"""
Filter, sort and view-model schemas for the performance dashboard.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .performance import (
    AdSetSummary,
    AdSummary,
    CampaignSummary,
    DailySummary,
    OverviewSummary,
    PlatformSummary,
)


class SortKey(str, Enum):
    SPEND = "spend"
    RESULTS = "results"
    ROAS = "roas"
    CTR = "ctr"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterConfig(BaseModel):
    """User-selected bounds. Every bound is optional and inclusive."""
    date_start: Optional[str] = Field(None, description="Earliest day, YYYY-MM-DD")
    date_end: Optional[str] = Field(None, description="Latest day, YYYY-MM-DD")
    spend_min: Optional[float] = None
    roas_min: Optional[float] = None
    roas_max: Optional[float] = None

    @property
    def has_date_bounds(self) -> bool:
        return bool(self.date_start or self.date_end)

    def without_dates(self) -> "FilterConfig":
        return self.model_copy(update={"date_start": None, "date_end": None})


class SortConfig(BaseModel):
    key: SortKey = SortKey.SPEND
    direction: SortDirection = SortDirection.DESC


class DashboardState(BaseModel):
    """Everything the dashboard view depends on besides the records."""
    filters: FilterConfig = Field(default_factory=FilterConfig)
    sort: SortConfig = Field(default_factory=SortConfig)
    campaign_id: Optional[str] = None
    ad_set_id: Optional[str] = None


class DashboardView(BaseModel):
    overview: OverviewSummary
    campaigns: List[CampaignSummary]
    ad_sets: List[AdSetSummary]
    ads: List[AdSummary]
    daily: List[DailySummary]
    platforms: List[PlatformSummary]
