"""
Dashboard view model built from a snapshot of raw records.
"""
from typing import Sequence

from adperf.schemas.dashboard import DashboardState, DashboardView
from adperf.schemas.performance import AggregationLevel, PerformanceRecord
from adperf.services.aggregation import aggregate, daily_timeline, platform_breakdown, summarize_records
from adperf.services.selection import drill_down, filter_items, select


def build_dashboard_view(records: Sequence[PerformanceRecord], state: DashboardState) -> DashboardView:
    """
    Date-filter the raw rows once, then derive every tab from that snapshot.

    Roll-ups carry no single day, so only the spend and ROAS bounds are applied
    to them, daily rows included. The overview and platform split cover the
    whole date-filtered snapshot. The ad set tab narrows to the selected campaign and the ads tab to
    the selected ad set (or campaign).
    """
    filters = state.filters
    date_only = filters.model_copy(update={"spend_min": None, "roas_min": None, "roas_max": None})
    snapshot = filter_items(records, date_only) if filters.has_date_bounds else list(records)

    metric_filters = filters.without_dates()

    campaigns = aggregate(snapshot, AggregationLevel.CAMPAIGN)

    ad_sets = aggregate(snapshot, AggregationLevel.AD_SET)
    if state.campaign_id:
        ad_sets = [s for s in ad_sets if s.campaign_id == state.campaign_id]

    ad_rows = drill_down(snapshot, campaign_id=state.campaign_id, ad_set_id=state.ad_set_id)
    ads = aggregate(ad_rows, AggregationLevel.AD)

    return DashboardView(
        overview=summarize_records(snapshot, filters.date_start, filters.date_end),
        campaigns=select(campaigns, metric_filters, state.sort),
        ad_sets=select(ad_sets, metric_filters, state.sort),
        ads=select(ads, metric_filters, state.sort),
        daily=filter_items(daily_timeline(snapshot), metric_filters),
        platforms=platform_breakdown(snapshot),
    )
