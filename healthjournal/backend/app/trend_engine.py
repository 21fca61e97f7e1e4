from __future__ import annotations

import logging
import statistics
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from .analysis_utils import median_value, numeric_summary, population_std, round_half_up, within
from .checkins import CheckIn, to_utc, utc_date
from .symptom_values import extract_severity

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 14


def symptom_value(checkin: CheckIn, symptom_name: str) -> object:
    if not checkin.symptoms:
        return None
    return checkin.symptoms.get(symptom_name)


def build_data_points(values_by_date: Dict[str, List[float]]) -> List[dict]:
    points = [
        {
            "date": day,
            "value": round_half_up(statistics.mean(values), 2),
            "count": len(values),
        }
        for day, values in values_by_date.items()
    ]
    points.sort(key=lambda item: item["date"])
    return points


def compute_trend_statistics(values: List[float]) -> dict:
    summary = numeric_summary(values)
    return {
        "average": summary["average"],
        "min": summary["min"],
        "max": summary["max"],
        "median": median_value(values),
        "standardDeviation": population_std(values),
    }


def analyze_trend(
    checkins: Sequence[CheckIn],
    symptom_name: str,
    days: int,
    now: datetime,
) -> Optional[dict]:
    """Daily averages and overall statistics for one symptom.

    Only check-ins inside `[now - days, now]` are used, and only values that
    carry a numeric severity. Returns None when nothing numeric is left, so
    callers can tell "no data" apart from a series of zeros.
    """
    end = to_utc(now)
    start = end - timedelta(days=max(days, 1))

    values_by_date: Dict[str, List[float]] = {}
    all_values: List[float] = []
    for checkin in checkins:
        if not within(checkin.timestamp, start, end):
            continue
        severity = extract_severity(symptom_value(checkin, symptom_name))
        if severity is None:
            continue
        values_by_date.setdefault(utc_date(checkin.timestamp).isoformat(), []).append(severity)
        all_values.append(severity)

    if not all_values:
        return None

    data_points = build_data_points(values_by_date)
    logger.debug("Trend for %s: %s values over %s days", symptom_name, len(all_values), len(data_points))
    return {
        "symptom": symptom_name,
        "dateRange": {
            "start": start.date().isoformat(),
            "end": end.date().isoformat(),
        },
        "dataPoints": data_points,
        "statistics": compute_trend_statistics(all_values),
    }
