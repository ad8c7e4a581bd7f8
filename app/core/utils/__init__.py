"""유틸리티 모듈"""

from app.core.utils.datetime import (
    UTC,
    days_ago,
    ensure_utc,
    format_iso,
    now_utc,
    parse_iso,
)
from app.core.utils.singleflight import SingleFlight
from app.core.utils.time import (
    calculate_elapsed_time_ms,
    measure_time,
)

__all__ = [
    # datetime
    "UTC",
    "now_utc",
    "ensure_utc",
    "format_iso",
    "parse_iso",
    "days_ago",
    # concurrency
    "SingleFlight",
    # time measurement
    "calculate_elapsed_time_ms",
    "measure_time",
]
