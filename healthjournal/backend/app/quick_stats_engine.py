"""
Period-over-period comparison for the dashboard.

Compares the last `days` UTC dates (today included) against the `days`
dates before them: check-in counts, the most frequent symptoms with their
severity trend, the overall severity trend and how the latest check-in sits
against this period's averages.
"""

from __future__ import annotations

import statistics
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from .analysis_utils import STABLE, classify_change, mean_or_none, round_half_up
from .checkins import CheckIn, utc_date
from .symptom_values import iter_severities

DEFAULT_PERIOD_DAYS = 7
TOP_SYMPTOM_LIMIT = 5
LATEST_COMPARISON_MARGIN = 0.5


def collect_severities(checkins: Sequence[CheckIn]) -> Dict[str, List[float]]:
    severities: Dict[str, List[float]] = {}
    for checkin in checkins:
        for name, severity in iter_severities(checkin):
            severities.setdefault(name, []).append(severity)
    return severities


def build_top_symptoms(
    current: Dict[str, List[float]],
    previous: Dict[str, List[float]],
    limit: int = TOP_SYMPTOM_LIMIT,
) -> List[dict]:
    top_symptoms = []
    for name, values in current.items():
        avg_severity = round_half_up(statistics.mean(values), 2)
        previous_avg = mean_or_none(previous.get(name, []))
        top_symptoms.append({
            "name": name,
            "frequency": len(values),
            "avgSeverity": avg_severity,
            "trend": classify_change(avg_severity, previous_avg),
        })
    top_symptoms.sort(key=lambda item: item["frequency"], reverse=True)
    return top_symptoms[:limit]


def overall_severity(severities: Dict[str, List[float]]) -> float:
    flat = [value for values in severities.values() for value in values]
    if not flat:
        return 0
    return round_half_up(statistics.mean(flat), 2)


def compare_latest(value: float, average: float) -> str:
    difference = value - average
    if difference > LATEST_COMPARISON_MARGIN:
        return "above"
    if difference < -LATEST_COMPARISON_MARGIN:
        return "below"
    return "equal"


def build_latest_checkin(
    checkins: Sequence[CheckIn],
    current: Dict[str, List[float]],
) -> Optional[dict]:
    if not checkins:
        return None
    latest = max(checkins, key=lambda item: item.timestamp)
    comparisons = []
    for name, severity in iter_severities(latest):
        values = current.get(name)
        if not values:
            continue
        average = round_half_up(statistics.mean(values), 1)
        comparisons.append({
            "name": name,
            "latestValue": severity,
            "averageValue": average,
            "trend": compare_latest(severity, average),
        })
    if not comparisons:
        return None
    return {
        "timestamp": latest.timestamp.isoformat(),
        "symptoms": comparisons,
    }


def period_payload(start: date, end: date, days: int) -> dict:
    return {"start": start.isoformat(), "end": end.isoformat(), "days": days}


def calculate_quick_stats(checkins: Sequence[CheckIn], days: int, now: datetime) -> dict:
    days = max(days, 1)
    today = utc_date(now)
    current_start = today - timedelta(days=days - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)

    current_checkins = []
    previous_checkins = []
    for checkin in checkins:
        day = utc_date(checkin.timestamp)
        if current_start <= day <= today:
            current_checkins.append(checkin)
        elif previous_start <= day <= previous_end:
            previous_checkins.append(checkin)

    current_count = len(current_checkins)
    previous_count = len(previous_checkins)
    change = current_count - previous_count
    percent_change = round_half_up(change / previous_count * 100, 1) if previous_count else 0

    current_severities = collect_severities(current_checkins)
    previous_severities = collect_severities(previous_checkins)
    current_avg = overall_severity(current_severities)
    previous_avg = overall_severity(previous_severities)
    severity_trend = classify_change(current_avg, previous_avg) if previous_severities else STABLE

    return {
        "period": {
            "current": period_payload(current_start, today, days),
            "previous": period_payload(previous_start, previous_end, days),
        },
        "checkInCount": {
            "current": current_count,
            "previous": previous_count,
            "change": change,
            "percentChange": percent_change,
        },
        "topSymptoms": build_top_symptoms(current_severities, previous_severities),
        "averageSeverity": {
            "current": current_avg,
            "previous": previous_avg,
            "change": round_half_up(current_avg - previous_avg, 2),
            "trend": severity_trend,
        },
        "latestCheckIn": build_latest_checkin(current_checkins, current_severities),
    }
