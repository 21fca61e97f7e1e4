from __future__ import annotations

import math
import statistics
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .checkins import CheckIn, utc_date

TREND_THRESHOLD = 0.10

IMPROVING = "improving"
WORSENING = "worsening"
STABLE = "stable"


def round_half_up(value: float, places: int = 0) -> float:
    # exact halves round up rather than to even
    factor = 10 ** places
    rounded = math.floor(value * factor + 0.5)
    if places == 0:
        return rounded
    return rounded / factor


def mean_or_none(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return statistics.mean(values)


def numeric_summary(values: List[float]) -> dict:
    if not values:
        return {"min": 0, "max": 0, "average": 0}
    return {
        "min": min(values),
        "max": max(values),
        "average": round_half_up(statistics.mean(values), 2),
    }


def median_value(values: List[float]) -> float:
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return round_half_up((ordered[mid - 1] + ordered[mid]) / 2, 2)
    return ordered[mid]


def population_std(values: List[float]) -> float:
    if not values:
        return 0
    return round_half_up(statistics.pstdev(values), 2)


def classify_change(current: Optional[float], previous: Optional[float]) -> str:
    """Label a severity change as improving, worsening or stable.

    Lower severity is better. A move of more than 10% of the previous value in
    either direction counts as a change; without a positive previous baseline
    there is nothing to compare against and the result is stable.
    """
    if current is None or previous is None or previous <= 0:
        return STABLE
    delta = current - previous
    threshold = previous * TREND_THRESHOLD
    if delta < -threshold:
        return IMPROVING
    if delta > threshold:
        return WORSENING
    return STABLE


def active_dates(checkins: Iterable[CheckIn]) -> List[date]:
    return sorted({utc_date(checkin.timestamp) for checkin in checkins})


def date_range(start: date, end: date) -> List[date]:
    days: List[date] = []
    current = start
    while current <= end:
        days.append(current)
        current = current + timedelta(days=1)
    return days


def group_by_date(checkins: Iterable[CheckIn]) -> Dict[date, List[CheckIn]]:
    grouped: Dict[date, List[CheckIn]] = {}
    for checkin in checkins:
        grouped.setdefault(utc_date(checkin.timestamp), []).append(checkin)
    return grouped


def within(timestamp: datetime, start: datetime, end: datetime) -> bool:
    return start <= timestamp <= end
