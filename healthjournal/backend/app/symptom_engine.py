from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .analysis_utils import numeric_summary, round_half_up
from .checkins import CheckIn
from .symptom_values import CATEGORICAL, NUMERIC, classify_symptom_type, extract_severity, iter_symptoms

logger = logging.getLogger(__name__)


def distinct_values(values: Sequence[object]) -> List[object]:
    # values can be mappings, so no set()
    seen: List[object] = []
    for value in values:
        if value is not None and value not in seen:
            seen.append(value)
    return seen


def collect_symptom_values(checkins: Sequence[CheckIn]) -> Dict[str, List[object]]:
    symptom_values: Dict[str, List[object]] = {}
    for checkin in checkins:
        for name, value in iter_symptoms(checkin):
            symptom_values.setdefault(name, []).append(value)
    return symptom_values


def build_symptom_stats(name: str, values: List[object], total_checkins: int) -> dict:
    count = len(values)
    symptom_type = classify_symptom_type(values)
    stat = {
        "name": name,
        "count": count,
        "percentage": round_half_up(count / total_checkins * 100, 1) if total_checkins else 0.0,
        "type": symptom_type,
    }
    if symptom_type == NUMERIC:
        severities = [extract_severity(value) for value in values if value is not None]
        stat.update(numeric_summary(severities))
    elif symptom_type == CATEGORICAL:
        stat["values"] = distinct_values(values)
    return stat


def analyze_symptoms(checkins: Sequence[CheckIn]) -> dict:
    total_checkins = len(checkins)
    if total_checkins == 0:
        return {"symptoms": [], "totalCheckins": 0}

    symptom_values = collect_symptom_values(checkins)
    symptoms = [
        build_symptom_stats(name, values, total_checkins)
        for name, values in symptom_values.items()
    ]
    symptoms.sort(key=lambda item: item["count"], reverse=True)
    logger.debug("Aggregated %s symptoms over %s check-ins", len(symptoms), total_checkins)
    return {"symptoms": symptoms, "totalCheckins": total_checkins}
