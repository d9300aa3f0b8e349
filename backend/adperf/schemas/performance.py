"""
Performance record and roll-up schemas.
"""
import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from adperf.errors import PartialWriteError


TEXT_FIELDS = (
    "campaign_id",
    "campaign_name",
    "ad_set_id",
    "ad_set_name",
    "ad_id",
    "ad_name",
    "placement",
    "platform",
    "delivery_status",
    "delivery_level",
    "day",
    "starts",
    "ends",
    "reporting_starts",
    "reporting_ends",
    "attribution_setting",
    "result_type",
)

NUMERIC_FIELDS = (
    "reach",
    "impressions",
    "frequency",
    "results",
    "amount_spent",
    "cost_per_result",
    "purchase_roas",
    "ctr_all",
    "result_rate",
)


def finite_or_zero(value: Any) -> float:
    """Coerce anything number-like to a finite float, 0.0 otherwise."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class AggregationLevel(str, Enum):
    """Granularity a set of rows can be rolled up to."""
    AD = "ad"
    AD_SET = "ad_set"
    CAMPAIGN = "campaign"
    DAY = "day"
    PLATFORM = "platform"


class PerformanceRecord(BaseModel):
    """One ad x day x platform x placement row of an Ads Manager export."""

    # Campaign
    campaign_id: str = ""
    campaign_name: str = ""

    # Ad set
    ad_set_id: str = ""
    ad_set_name: str = ""

    # Ad
    ad_id: str = ""
    ad_name: str = ""

    # Delivery dimension
    placement: str = ""
    platform: str = ""

    # Status
    delivery_status: str = ""
    delivery_level: str = ""

    day: str = ""  # YYYY-MM-DD

    # Volume metrics
    reach: float = 0.0
    impressions: float = 0.0
    frequency: float = 0.0
    results: float = 0.0
    amount_spent: float = 0.0

    # Ratio metrics
    cost_per_result: float = 0.0
    purchase_roas: float = 0.0
    ctr_all: float = 0.0
    result_rate: float = 0.0

    # Campaign validity window
    starts: str = ""
    ends: str = ""
    reporting_starts: str = ""
    reporting_ends: str = ""

    attribution_setting: str = ""
    result_type: str = ""

    class Config:
        frozen = True
        from_attributes = True

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _finite_number(cls, value: Any) -> float:
        return finite_or_zero(value)


class AggregateSummary(BaseModel):
    """Metrics shared by every roll-up level."""
    level: AggregationLevel
    total_spend: float = 0.0
    total_results: float = 0.0
    total_impressions: float = 0.0
    total_reach: float = 0.0
    avg_roas: float = 0.0
    avg_ctr: float = 0.0
    cost_per_result: float = 0.0
    earliest_day: Optional[str] = None
    latest_day: Optional[str] = None


class CampaignSummary(AggregateSummary):
    level: AggregationLevel = AggregationLevel.CAMPAIGN
    campaign_id: str
    campaign_name: str = ""
    starts: str = ""
    ends: str = ""
    ad_set_count: int = 0
    ad_count: int = 0


class AdSetSummary(AggregateSummary):
    level: AggregationLevel = AggregationLevel.AD_SET
    ad_set_id: str
    ad_set_name: str = ""
    campaign_id: str = ""
    campaign_name: str = ""
    ad_count: int = 0


class AdSummary(AggregateSummary):
    level: AggregationLevel = AggregationLevel.AD
    ad_id: str
    ad_name: str = ""
    ad_set_id: str = ""
    ad_set_name: str = ""
    campaign_id: str = ""
    campaign_name: str = ""
    delivery_status: str = ""
    placements: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)
    statuses: List[str] = Field(default_factory=list)


class DailySummary(AggregateSummary):
    level: AggregationLevel = AggregationLevel.DAY
    day: str
    campaign_count: int = 0
    ad_set_count: int = 0
    ad_count: int = 0


class PlatformSummary(AggregateSummary):
    level: AggregationLevel = AggregationLevel.PLATFORM
    platform: str
    campaign_count: int = 0
    ad_count: int = 0


class OverviewSummary(BaseModel):
    """Account-wide totals for the headline cards."""
    total_spend: float = 0.0
    total_results: float = 0.0
    total_impressions: float = 0.0
    total_reach: float = 0.0
    avg_roas: float = 0.0
    avg_ctr: float = 0.0
    cost_per_result: float = 0.0
    campaign_count: int = 0
    ad_set_count: int = 0
    ad_count: int = 0
    date_range: str = ""


class DateRange(BaseModel):
    start: str
    end: str


class StoreSummary(BaseModel):
    """Health check over everything persisted."""
    total_records: int = 0
    date_range: Optional[DateRange] = None
    campaign_count: int = 0
    ad_set_count: int = 0
    ad_count: int = 0


class UpsertResult(BaseModel):
    """Outcome of one upsert batch."""
    written: int = 0
    rejected: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise PartialWriteError(self)
