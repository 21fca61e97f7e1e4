"""
Symptom value normalization.

Check-ins written over the life of the journal carry symptom values in four
shapes: a bare number, a boolean presence flag, a categorical word such as
"bad", or the canonical mapping `{"severity": 1-10, "location"?, "notes"?}`.
Everything that needs a severity goes through this module so the shape
checks live in one place.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .checkins import CheckIn

logger = logging.getLogger(__name__)

NUMERIC = "numeric"
BOOLEAN = "boolean"
CATEGORICAL = "categorical"

MIN_SEVERITY = 1
MAX_SEVERITY = 10
BOOLEAN_PRESENT_SEVERITY = 7
BOOLEAN_ABSENT_SEVERITY = 1
DEFAULT_CATEGORICAL_SEVERITY = 5

CATEGORICAL_SEVERITY = {
    "good": 1,
    "great": 1,
    "excellent": 1,
    "strong": 1,
    "fine": 2,
    "normal": 2,
    "high": 2,
    "rested": 2,
    "light": 4,
    "moderate": 5,
    "okay": 5,
    "ok": 5,
    "fair": 5,
    "middling": 5,
    "medium": 5,
    "poor": 8,
    "weak": 8,
    "tired": 8,
    "low": 9,
    "exhausted": 9,
    "drained": 9,
    "bad": 10,
    "terrible": 10,
    "awful": 10,
    "horrible": 10,
}


@dataclass(frozen=True)
class CanonicalSymptom:
    severity: float
    location: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {"severity": self.severity}
        if self.location is not None:
            payload["location"] = self.location
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def is_number(value: object) -> bool:
    # bool is an int subclass and has its own meaning here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def canonical_severity(value: object) -> Optional[float]:
    if isinstance(value, CanonicalSymptom):
        return value.severity if is_number(value.severity) else None
    if isinstance(value, Mapping) and "severity" in value:
        severity = value["severity"]
        return severity if is_number(severity) else None
    return None


def categorical_to_severity(label: str) -> int:
    key = label.strip().lower()
    if key in CATEGORICAL_SEVERITY:
        return CATEGORICAL_SEVERITY[key]
    logger.warning(
        "Unknown categorical symptom value %r, using severity %s",
        label,
        DEFAULT_CATEGORICAL_SEVERITY,
    )
    return DEFAULT_CATEGORICAL_SEVERITY


def normalize_symptom_value(value: object) -> Optional[CanonicalSymptom]:
    if value is None:
        return None
    if isinstance(value, CanonicalSymptom):
        return value
    if isinstance(value, bool):
        return CanonicalSymptom(severity=BOOLEAN_PRESENT_SEVERITY if value else BOOLEAN_ABSENT_SEVERITY)
    if is_number(value):
        return CanonicalSymptom(severity=clamp(value, MIN_SEVERITY, MAX_SEVERITY))
    if isinstance(value, str):
        return CanonicalSymptom(severity=categorical_to_severity(value))
    if isinstance(value, Mapping):
        severity = canonical_severity(value)
        if severity is not None:
            return CanonicalSymptom(
                severity=severity,
                location=value.get("location"),
                notes=value.get("notes"),
            )
    logger.warning("Skipping unparseable symptom value %r", value)
    return None


def normalize_symptom_map(symptoms: Optional[Dict[str, object]]) -> Dict[str, CanonicalSymptom]:
    normalized: Dict[str, CanonicalSymptom] = {}
    if not symptoms:
        return normalized
    for name, value in symptoms.items():
        canonical = normalize_symptom_value(value)
        if canonical is not None:
            normalized[name] = canonical
    return normalized


def extract_severity(value: object) -> Optional[float]:
    """Return the numeric severity carried by a value, or None.

    Only bare numbers and canonical values count. Booleans and categorical
    words have no measured severity and are left out of severity statistics.
    """
    if is_number(value):
        return value
    return canonical_severity(value)


def is_numeric_value(value: object) -> bool:
    return extract_severity(value) is not None


def classify_symptom_type(values: Iterable[object]) -> str:
    present = [value for value in values if value is not None]
    if not present:
        return CATEGORICAL
    if all(isinstance(value, bool) for value in present):
        return BOOLEAN
    if all(is_numeric_value(value) for value in present):
        return NUMERIC
    return CATEGORICAL


def iter_symptoms(checkin: CheckIn) -> Iterator[Tuple[str, object]]:
    symptoms = checkin.symptoms
    if not symptoms:
        return
    for name, value in symptoms.items():
        yield name, value


def iter_severities(checkin: CheckIn) -> Iterator[Tuple[str, float]]:
    for name, value in iter_symptoms(checkin):
        severity = extract_severity(value)
        if severity is not None:
            yield name, severity
