"""
Spend-weighted roll-ups of performance rows.

Ratio metrics (ROAS, CTR) are weighted by amount spent, never plain averages:
an ad that spent $1 must not move the account ROAS as much as one that spent $1,000.
"""
import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from adperf.schemas.performance import (
    AdSetSummary,
    AdSummary,
    AggregateSummary,
    AggregationLevel,
    CampaignSummary,
    DailySummary,
    OverviewSummary,
    PlatformSummary,
    PerformanceRecord,
)


STATUS_PRIORITY: Dict[str, int] = {
    "active": 4,
    "not_delivering": 3,
    "inactive": 2,
    "archived": 1,
}


def status_rank(status: str) -> int:
    return STATUS_PRIORITY.get((status or "").strip().lower(), 0)


def weighted_average(pairs: Iterable[Tuple[float, float]]) -> float:
    """
    Weighted mean of (value, weight) pairs.

    Returns 0 when the total weight is 0. A pair whose product is not finite
    contributes nothing to the numerator.
    """
    numerator = 0.0
    denominator = 0.0
    for value, weight in pairs:
        product = value * weight
        if math.isfinite(product):
            numerator += product
        denominator += weight
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def _safe_divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def _add_unique(values: List[str], value: str) -> None:
    if value and value not in values:
        values.append(value)


class _Accumulator:
    """Running totals for one group."""

    def __init__(self, first: PerformanceRecord):
        self.first = first
        self.total_spend = 0.0
        self.total_results = 0.0
        self.total_impressions = 0.0
        self.total_reach = 0.0
        self.roas_pairs: List[Tuple[float, float]] = []
        self.ctr_pairs: List[Tuple[float, float]] = []
        self.earliest_day: Optional[str] = None
        self.latest_day: Optional[str] = None
        self.campaign_ids: set = set()
        self.ad_set_ids: set = set()
        self.ad_ids: set = set()
        self.placements: List[str] = []
        self.platforms: List[str] = []
        self.statuses: List[str] = []
        self.delivery_status = first.delivery_status

    def add(self, record: PerformanceRecord) -> None:
        spend = record.amount_spent
        self.total_spend += spend
        self.total_results += record.results
        self.total_impressions += record.impressions
        self.total_reach += record.reach

        self.roas_pairs.append((record.purchase_roas, spend))
        self.ctr_pairs.append((record.ctr_all, spend))

        if record.day:
            if self.earliest_day is None or record.day < self.earliest_day:
                self.earliest_day = record.day
            if self.latest_day is None or record.day > self.latest_day:
                self.latest_day = record.day

        if record.campaign_id:
            self.campaign_ids.add(record.campaign_id)
        if record.ad_set_id:
            self.ad_set_ids.add(record.ad_set_id)
        if record.ad_id:
            self.ad_ids.add(record.ad_id)

        _add_unique(self.placements, record.placement)
        _add_unique(self.platforms, record.platform)
        _add_unique(self.statuses, record.delivery_status)
        if status_rank(record.delivery_status) > status_rank(self.delivery_status):
            self.delivery_status = record.delivery_status

    def metrics(self) -> dict:
        return {
            "total_spend": self.total_spend,
            "total_results": self.total_results,
            "total_impressions": self.total_impressions,
            "total_reach": self.total_reach,
            "avg_roas": weighted_average(self.roas_pairs),
            "avg_ctr": weighted_average(self.ctr_pairs),
            "cost_per_result": _safe_divide(self.total_spend, self.total_results),
            "earliest_day": self.earliest_day,
            "latest_day": self.latest_day,
        }


def _group(
    records: Iterable[PerformanceRecord],
    key: Callable[[PerformanceRecord], str],
) -> List[Tuple[str, _Accumulator]]:
    groups: Dict[str, _Accumulator] = {}
    for record in records:
        group_key = key(record)
        accumulator = groups.get(group_key)
        if accumulator is None:
            accumulator = groups[group_key] = _Accumulator(record)
        accumulator.add(record)
    return list(groups.items())


def _campaign_summary(key: str, acc: _Accumulator) -> CampaignSummary:
    first = acc.first
    return CampaignSummary(
        campaign_id=key,
        campaign_name=first.campaign_name,
        starts=first.starts,
        ends=first.ends,
        ad_set_count=len(acc.ad_set_ids),
        ad_count=len(acc.ad_ids),
        **acc.metrics(),
    )


def _ad_set_summary(key: str, acc: _Accumulator) -> AdSetSummary:
    first = acc.first
    return AdSetSummary(
        ad_set_id=key,
        ad_set_name=first.ad_set_name,
        campaign_id=first.campaign_id,
        campaign_name=first.campaign_name,
        ad_count=len(acc.ad_ids),
        **acc.metrics(),
    )


def _ad_summary(key: str, acc: _Accumulator) -> AdSummary:
    first = acc.first
    return AdSummary(
        ad_id=key,
        ad_name=first.ad_name,
        ad_set_id=first.ad_set_id,
        ad_set_name=first.ad_set_name,
        campaign_id=first.campaign_id,
        campaign_name=first.campaign_name,
        delivery_status=acc.delivery_status,
        placements=list(acc.placements),
        platforms=list(acc.platforms),
        statuses=list(acc.statuses),
        **acc.metrics(),
    )


def _daily_summary(key: str, acc: _Accumulator) -> DailySummary:
    return DailySummary(
        day=key,
        campaign_count=len(acc.campaign_ids),
        ad_set_count=len(acc.ad_set_ids),
        ad_count=len(acc.ad_ids),
        **acc.metrics(),
    )


def _platform_summary(key: str, acc: _Accumulator) -> PlatformSummary:
    return PlatformSummary(
        platform=key,
        campaign_count=len(acc.campaign_ids),
        ad_count=len(acc.ad_ids),
        **acc.metrics(),
    )


def aggregate(
    records: Sequence[PerformanceRecord],
    level: AggregationLevel,
) -> List[AggregateSummary]:
    """
    Roll records up to the given level, highest spend first.

    Ad level drops zero-spend rows before merging; Day level skips rows
    without a day. Platform level keeps rows with a blank platform under "".
    Ties keep the order in which groups were first seen.
    """
    level = AggregationLevel(level)

    if level == AggregationLevel.CAMPAIGN:
        summaries = [_campaign_summary(k, acc) for k, acc in _group(records, lambda r: r.campaign_id)]
    elif level == AggregationLevel.AD_SET:
        summaries = [_ad_set_summary(k, acc) for k, acc in _group(records, lambda r: r.ad_set_id)]
    elif level == AggregationLevel.AD:
        spending = (r for r in records if r.amount_spent != 0)
        summaries = [_ad_summary(k, acc) for k, acc in _group(spending, lambda r: r.ad_id)]
    elif level == AggregationLevel.PLATFORM:
        summaries = [_platform_summary(k, acc) for k, acc in _group(records, lambda r: r.platform)]
    else:
        dated = (r for r in records if r.day)
        summaries = [_daily_summary(k, acc) for k, acc in _group(dated, lambda r: r.day)]

    # sorted() is stable, so equal spend keeps discovery order
    return sorted(summaries, key=lambda s: s.total_spend, reverse=True)


def daily_timeline(records: Sequence[PerformanceRecord]) -> List[DailySummary]:
    """Day-level summaries, most recent day first."""
    days = aggregate(records, AggregationLevel.DAY)
    return sorted(days, key=lambda s: s.day, reverse=True)


def platform_breakdown(records: Sequence[PerformanceRecord]) -> List[PlatformSummary]:
    """Spend and results per publisher platform, highest spend first."""
    return aggregate(records, AggregationLevel.PLATFORM)


def _display_date_range(
    records: Sequence[PerformanceRecord],
    date_start: Optional[str],
    date_end: Optional[str],
) -> str:
    # an open-ended filter has no displayable range
    if date_start or date_end:
        return f"{date_start} - {date_end}" if date_start and date_end else ""

    days = [r.day for r in records if r.day]
    if days:
        return f"{min(days)} - {max(days)}"

    starts = [r.reporting_starts for r in records if r.reporting_starts]
    ends = [r.reporting_ends for r in records if r.reporting_ends]
    if starts and ends:
        return f"{min(starts)} - {max(ends)}"
    return ""


def summarize_records(
    records: Sequence[PerformanceRecord],
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
) -> OverviewSummary:
    """Account-level totals for the overview cards."""
    if not records:
        return OverviewSummary(date_range=_display_date_range(records, date_start, date_end))

    acc = _Accumulator(records[0])
    for record in records:
        acc.add(record)
    metrics = acc.metrics()

    return OverviewSummary(
        total_spend=metrics["total_spend"],
        total_results=metrics["total_results"],
        total_impressions=metrics["total_impressions"],
        total_reach=metrics["total_reach"],
        avg_roas=metrics["avg_roas"],
        avg_ctr=metrics["avg_ctr"],
        cost_per_result=metrics["cost_per_result"],
        campaign_count=len(acc.campaign_ids),
        ad_set_count=len(acc.ad_set_ids),
        ad_count=len(acc.ad_ids),
        date_range=_display_date_range(records, date_start, date_end),
    )
