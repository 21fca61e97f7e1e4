"""
Check-in records as the analysis engine sees them.

The storage layer hands over documents shaped like the persisted check-in
(`userId`, `timestamp`, `structured.symptoms`, ...). `checkin_from_document`
adapts them into `CheckIn` values so the analysis modules never deal with
Map-like symptom containers, string timestamps or naive datetimes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CheckIn:
    user_id: str
    timestamp: datetime
    symptoms: Optional[Dict[str, object]] = None
    activities: List[str] = field(default_factory=list)
    triggers: List[str] = field(default_factory=list)
    notes: str = ""
    flagged_for_doctor: bool = False
    raw_transcript: str = ""


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp format: {value!r}") from exc
        return to_utc(parsed)
    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def utc_date(timestamp: datetime) -> date:
    return to_utc(timestamp).date()


def _labels(values) -> List[str]:
    if not values:
        return []
    return list(dict.fromkeys(str(item) for item in values))


def _symptom_map(symptoms) -> Optional[Dict[str, object]]:
    if symptoms is None:
        return None
    if isinstance(symptoms, Mapping):
        return dict(symptoms.items())
    if hasattr(symptoms, "items"):
        return dict(symptoms.items())
    return None


def checkin_from_document(doc: Mapping) -> CheckIn:
    structured = doc.get("structured") or {}
    return CheckIn(
        user_id=str(doc.get("userId", doc.get("user_id", ""))),
        timestamp=parse_timestamp(doc["timestamp"]),
        symptoms=_symptom_map(structured.get("symptoms")),
        activities=_labels(structured.get("activities")),
        triggers=_labels(structured.get("triggers")),
        notes=structured.get("notes") or "",
        flagged_for_doctor=bool(doc.get("flaggedForDoctor", doc.get("flagged_for_doctor", False))),
        raw_transcript=doc.get("rawTranscript") or doc.get("raw_transcript") or "",
    )
