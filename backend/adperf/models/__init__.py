from adperf.models.ad_performance import AdPerformanceRecord, NATURAL_KEY_COLUMNS

__all__ = [
    "AdPerformanceRecord",
    "NATURAL_KEY_COLUMNS",
]
