"""
Clinician-facing summary for an explicit date range.

Combines per-symptom severity summaries, a good/bad day timeline, the
activity/trigger to symptom co-occurrence table and the check-ins the user
flagged for their doctor.
"""

from __future__ import annotations

import logging
import math
import statistics
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .analysis_utils import STABLE, classify_change, date_range, group_by_date, round_half_up, within
from .checkins import CheckIn, to_utc, utc_date
from .symptom_values import iter_severities, iter_symptoms

logger = logging.getLogger(__name__)

BAD_DAY_AVG_THRESHOLD = 6.0
BAD_DAY_MAX_THRESHOLD = 7.0

GOOD = "good"
BAD = "bad"
INTERPOLATED_GOOD = "interpolated_good"
INTERPOLATED_BAD = "interpolated_bad"

ACTIVITY = "activity"
TRIGGER = "trigger"


def split_trend(severities: List[float]) -> str:
    midpoint = len(severities) // 2
    first_half = severities[:midpoint]
    second_half = severities[midpoint:]
    if not first_half or not second_half:
        return STABLE
    return classify_change(statistics.mean(second_half), statistics.mean(first_half))


def build_symptom_summary(checkins: Sequence[CheckIn]) -> List[dict]:
    severities_by_symptom: Dict[str, List[float]] = {}
    dates_by_symptom: Dict[str, List[date]] = {}
    all_dates = {utc_date(checkin.timestamp) for checkin in checkins}

    for checkin in checkins:
        day = utc_date(checkin.timestamp)
        for name, severity in iter_severities(checkin):
            severities_by_symptom.setdefault(name, []).append(severity)
            dates_by_symptom.setdefault(name, []).append(day)

    summary = []
    for name, severities in severities_by_symptom.items():
        dates = dates_by_symptom[name]
        summary.append({
            "symptom": name,
            "count": len(severities),
            "minSeverity": min(severities),
            "maxSeverity": max(severities),
            "avgSeverity": round_half_up(statistics.mean(severities), 1),
            "firstReported": min(dates).isoformat(),
            "lastReported": max(dates).isoformat(),
            "trend": split_trend(severities),
            "frequency": round_half_up(len(set(dates)) / len(all_dates) * 100, 1),
        })
    summary.sort(key=lambda item: item["frequency"], reverse=True)
    return summary


def classify_day(
    day: date,
    day_checkins: List[CheckIn],
    avg_threshold: float,
    max_threshold: float,
) -> dict:
    severities: List[float] = []
    names = set()
    for checkin in day_checkins:
        for name, _ in iter_symptoms(checkin):
            names.add(name)
        severities.extend(severity for _, severity in iter_severities(checkin))

    max_severity = max(severities) if severities else 0
    avg_severity = statistics.mean(severities) if severities else 0
    is_bad = max_severity >= max_threshold or avg_severity >= avg_threshold
    return {
        "date": day.isoformat(),
        "quality": BAD if is_bad else GOOD,
        "avgSeverity": round_half_up(avg_severity, 1),
        "maxSeverity": max_severity,
        "symptomCount": len(names),
        "hasCheckIn": True,
    }


def interpolate_quality(timeline: List[dict], index: int) -> str:
    before: Optional[dict] = None
    after: Optional[dict] = None
    for entry in reversed(timeline[:index]):
        if entry["hasCheckIn"]:
            before = entry
            break
    for entry in timeline[index + 1:]:
        if entry["hasCheckIn"]:
            after = entry
            break
    neighbours = [entry for entry in (before, after) if entry is not None]
    if any(entry["quality"] == BAD for entry in neighbours):
        return INTERPOLATED_BAD
    return INTERPOLATED_GOOD


def is_good(entry: dict) -> bool:
    return entry["quality"] in (GOOD, INTERPOLATED_GOOD)


def is_bad(entry: dict) -> bool:
    return entry["quality"] in (BAD, INTERPOLATED_BAD)


def average_gap(timeline: List[dict], predicate) -> float:
    indices = [index for index, entry in enumerate(timeline) if predicate(entry)]
    if len(indices) < 2:
        return 0
    gaps = [curr - prev for prev, curr in zip(indices, indices[1:])]
    return round_half_up(statistics.mean(gaps), 1)


def bad_day_streaks(timeline: List[dict]) -> Tuple[float, int]:
    streaks: List[int] = []
    run = 0
    for entry in timeline:
        if is_bad(entry):
            run += 1
        elif run:
            streaks.append(run)
            run = 0
    if run:
        streaks.append(run)
    if not streaks:
        return 0, 0
    return round_half_up(statistics.mean(streaks), 1), max(streaks)


def analyze_good_bad_days(
    checkins: Sequence[CheckIn],
    start: datetime,
    end: datetime,
    avg_threshold: float = BAD_DAY_AVG_THRESHOLD,
    max_threshold: float = BAD_DAY_MAX_THRESHOLD,
) -> dict:
    by_date = group_by_date(checkins)
    timeline: List[dict] = []
    for day in date_range(utc_date(start), utc_date(end)):
        day_checkins = by_date.get(day)
        if day_checkins:
            timeline.append(classify_day(day, day_checkins, avg_threshold, max_threshold))
        else:
            timeline.append({
                "date": day.isoformat(),
                "quality": None,
                "avgSeverity": 0,
                "maxSeverity": 0,
                "symptomCount": 0,
                "hasCheckIn": False,
            })

    for index, entry in enumerate(timeline):
        if not entry["hasCheckIn"]:
            entry["quality"] = interpolate_quality(timeline, index)

    avg_streak, longest_streak = bad_day_streaks(timeline)
    return {
        "totalGoodDays": sum(1 for entry in timeline if is_good(entry)),
        "totalBadDays": sum(1 for entry in timeline if is_bad(entry)),
        "avgTimeBetweenGoodDays": average_gap(timeline, is_good),
        "avgTimeBetweenBadDays": average_gap(timeline, is_bad),
        "avgBadDayStreakLength": avg_streak,
        "longestBadDayStreak": longest_streak,
        "dailyQuality": timeline,
    }


def analyze_correlations(
    checkins: Sequence[CheckIn],
    min_co_occurrences: int = 1,
    min_strength: int = 0,
) -> List[dict]:
    """Conditional co-occurrence of activities/triggers with symptoms.

    correlationStrength is the share of an item's check-ins that also carry
    the symptom. It is not a statistical correlation: there is no baseline
    rate and no significance test.
    """
    item_totals: Dict[Tuple[str, str], int] = {}
    pair_counts: Dict[Tuple[str, str, str], int] = {}

    for checkin in checkins:
        symptom_names = [name for name, _ in iter_symptoms(checkin)]
        items = [(ACTIVITY, label) for label in dict.fromkeys(checkin.activities)]
        items += [(TRIGGER, label) for label in dict.fromkeys(checkin.triggers)]
        for item_type, label in items:
            item_totals[(item_type, label)] = item_totals.get((item_type, label), 0) + 1
            for symptom in symptom_names:
                key = (item_type, label, symptom)
                pair_counts[key] = pair_counts.get(key, 0) + 1

    correlations = []
    for (item_type, label, symptom), co_occurrences in pair_counts.items():
        total = item_totals[(item_type, label)]
        strength = round_half_up(co_occurrences / total * 100)
        if co_occurrences < min_co_occurrences or strength < min_strength:
            continue
        correlations.append({
            "item": label,
            "itemType": item_type,
            "symptom": symptom,
            "coOccurrenceCount": co_occurrences,
            "totalItemOccurrences": total,
            "correlationStrength": strength,
        })
    correlations.sort(key=lambda item: item["correlationStrength"], reverse=True)
    return correlations


def build_flagged_entry(checkin: CheckIn) -> dict:
    return {
        "timestamp": checkin.timestamp.isoformat(),
        "symptoms": dict(checkin.symptoms or {}),
        "activities": list(checkin.activities),
        "triggers": list(checkin.triggers),
        "notes": checkin.notes,
        "rawTranscript": checkin.raw_transcript,
    }


def generate_summary(
    checkins: Sequence[CheckIn],
    start: datetime,
    end: datetime,
    flagged_only: bool = False,
    bad_day_avg_threshold: float = BAD_DAY_AVG_THRESHOLD,
    bad_day_max_threshold: float = BAD_DAY_MAX_THRESHOLD,
    min_co_occurrences: int = 1,
    min_correlation_strength: int = 0,
) -> dict:
    start = to_utc(start)
    end = to_utc(end)
    selected = [
        checkin
        for checkin in checkins
        if within(checkin.timestamp, start, end)
        and (checkin.flagged_for_doctor or not flagged_only)
    ]
    selected.sort(key=lambda item: item.timestamp)

    unique_symptoms = {name for checkin in selected for name, _ in iter_symptoms(checkin)}
    flagged = [checkin for checkin in selected if checkin.flagged_for_doctor]
    logger.debug(
        "Summary %s..%s: %s check-ins, %s flagged",
        start.isoformat(),
        end.isoformat(),
        len(selected),
        len(flagged),
    )

    return {
        "period": {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "totalDays": math.ceil((end - start).total_seconds() / 86400),
        },
        "overview": {
            "totalCheckins": len(selected),
            "flaggedCheckins": len(flagged),
            "uniqueSymptoms": len(unique_symptoms),
            "daysWithCheckins": len({utc_date(checkin.timestamp) for checkin in selected}),
        },
        "symptomSummary": build_symptom_summary(selected),
        "goodBadDayAnalysis": analyze_good_bad_days(
            selected,
            start,
            end,
            bad_day_avg_threshold,
            bad_day_max_threshold,
        ),
        "correlations": analyze_correlations(selected, min_co_occurrences, min_correlation_strength),
        "flaggedEntries": [build_flagged_entry(checkin) for checkin in flagged],
    }
