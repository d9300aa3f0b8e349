"""
Filtering, sorting and drill-down over raw records and roll-ups.
"""
from typing import Iterable, List, Optional, Sequence, TypeVar, Union

from adperf.schemas.dashboard import FilterConfig, SortConfig, SortDirection, SortKey
from adperf.schemas.performance import AggregateSummary, DailySummary, PerformanceRecord

DashboardItem = Union[PerformanceRecord, AggregateSummary]
Item = TypeVar("Item", PerformanceRecord, AggregateSummary)

ACTIVE_STATUS = "active"

_RECORD_METRICS = {
    SortKey.SPEND: "amount_spent",
    SortKey.RESULTS: "results",
    SortKey.ROAS: "purchase_roas",
    SortKey.CTR: "ctr_all",
}

_SUMMARY_METRICS = {
    SortKey.SPEND: "total_spend",
    SortKey.RESULTS: "total_results",
    SortKey.ROAS: "avg_roas",
    SortKey.CTR: "avg_ctr",
}


def metric_value(item: DashboardItem, key: SortKey) -> float:
    """Read a sortable metric from either a raw record or a roll-up."""
    key = SortKey(key)
    if isinstance(item, PerformanceRecord):
        return getattr(item, _RECORD_METRICS[key])
    if isinstance(item, AggregateSummary):
        return getattr(item, _SUMMARY_METRICS[key])
    raise TypeError(f"Unsupported dashboard item: {type(item).__name__}")


def item_day(item: DashboardItem) -> Optional[str]:
    """The single day an item covers, or None for multi-day roll-ups."""
    if isinstance(item, PerformanceRecord):
        return item.day or None
    if isinstance(item, DailySummary):
        return item.day or None
    return None


def item_status(item: DashboardItem) -> str:
    status = getattr(item, "delivery_status", "") or ""
    return status.strip().lower()


def _matches(item: DashboardItem, filters: FilterConfig) -> bool:
    if filters.has_date_bounds:
        day = item_day(item)
        if day is None:
            return False
        if filters.date_start and day < filters.date_start:
            return False
        if filters.date_end and day > filters.date_end:
            return False

    spend = metric_value(item, SortKey.SPEND)
    if filters.spend_min is not None and spend < filters.spend_min:
        return False

    roas = metric_value(item, SortKey.ROAS)
    if filters.roas_min is not None and roas < filters.roas_min:
        return False
    if filters.roas_max is not None and roas > filters.roas_max:
        return False

    return True


def filter_items(items: Iterable[Item], filters: FilterConfig) -> List[Item]:
    """Keep items inside every configured bound. Bounds are inclusive."""
    return [item for item in items if _matches(item, filters)]


def sort_items(items: Iterable[Item], sort: SortConfig) -> List[Item]:
    """
    Active items first, then the requested metric in the requested direction.

    Items with equal sort values keep their input order.
    """
    items = list(items)
    descending = sort.direction == SortDirection.DESC

    by_metric = sorted(items, key=lambda item: metric_value(item, sort.key), reverse=descending)
    return sorted(by_metric, key=lambda item: item_status(item) != ACTIVE_STATUS)


def select(items: Iterable[Item], filters: FilterConfig, sort: SortConfig) -> List[Item]:
    return sort_items(filter_items(items, filters), sort)


def toggle_sort(current: SortConfig, key: SortKey) -> SortConfig:
    """Clicking the active descending column flips it to ascending; anything else sorts descending."""
    key = SortKey(key)
    if current.key == key and current.direction == SortDirection.DESC:
        return SortConfig(key=key, direction=SortDirection.ASC)
    return SortConfig(key=key, direction=SortDirection.DESC)


def drill_down(
    records: Sequence[PerformanceRecord],
    campaign_id: Optional[str] = None,
    ad_set_id: Optional[str] = None,
) -> List[PerformanceRecord]:
    """Restrict records to one ad set, or failing that one campaign."""
    if ad_set_id:
        return [r for r in records if r.ad_set_id == ad_set_id]
    if campaign_id:
        return [r for r in records if r.campaign_id == campaign_id]
    return list(records)
